import os
import wave
import time
import shutil
import subprocess
import logging
import concurrent.futures
import tempfile
from typing import List
import azure.cognitiveservices.speech as speechsdk

from cockpit.core import config
from cockpit.core.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

SPEECH_LANGUAGES = {"de": "de-DE", "en": "en-US"}

def _resolve_ffmpeg_bin() -> str:
    for c in [os.getenv("FFMPEG_BIN","").strip(), "/usr/bin/ffmpeg", "ffmpeg"]:
        if not c: continue
        try:
            subprocess.run([c, "-version"], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
            return c
        except (OSError, subprocess.CalledProcessError):
            pass
    logger.warning("FFmpeg not found. Conversion will fail for non-WAV input.")
    return "ffmpeg"

def get_audio_duration(path_wav: str) -> float:
    try:
        with wave.open(path_wav, "rb") as wf:
            rate = wf.getframerate() or 16000
            return wf.getnframes() / float(rate)
    except (wave.Error, OSError):
        return 0.0

def convert_to_wav_any(input_path: str) -> str:
    ffmpeg = _resolve_ffmpeg_bin()
    out_wav = input_path + ".__16k_mono_pcm.wav"
    cmd = [
        ffmpeg, "-y", "-hide_banner", "-nostdin",
        "-i", input_path,
        "-vn", "-sn", "-dn",
        "-acodec", "pcm_s16le",
        "-ar", "16000",
        "-ac", "1",
        "-f", "wav",
        out_wav
    ]
    t0 = time.time()
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        rc, err = proc.returncode, proc.stderr.decode(errors="ignore")[-800:]
    except OSError as e:
        rc, err = -1, str(e)
    if rc != 0 or not os.path.exists(out_wav):
        logger.error("FFmpeg failed rc=%s tail=%s", rc, err)
        if input_path.lower().endswith(".wav"):
            logger.warning("FFmpeg failed, but input is WAV. Attempting to use directly.")
            shutil.copy2(input_path, out_wav)
            return out_wav
        raise ValueError("Audio conversion failed")
    logger.info("FFmpeg convert ok (%.0f ms)", (time.time()-t0)*1000)
    return out_wav

def split_wav(path_wav: str, chunk_sec: int = 60) -> List[str]:
    chunks = []
    with wave.open(path_wav, "rb") as wf:
        framerate = wf.getframerate()
        n_channels = wf.getnchannels()
        sampwidth = wf.getsampwidth()
        frames_per_chunk = int(chunk_sec * framerate)
        total_frames = wf.getnframes()
        for start in range(0, total_frames, frames_per_chunk):
            wf.setpos(start)
            frames = wf.readframes(min(frames_per_chunk, total_frames - start))
            tmp_wav = tempfile.NamedTemporaryFile(suffix=".wav", delete=False)
            tmp_wav.close()
            with wave.open(tmp_wav.name, "wb") as out_wf:
                out_wf.setnchannels(n_channels)
                out_wf.setsampwidth(sampwidth)
                out_wf.setframerate(framerate)
                out_wf.writeframes(frames)
            chunks.append(tmp_wav.name)
    return chunks

def recognize_wav(path_wav: str, language: str = "de") -> str:
    """Continuous recognition of one WAV chunk; returns the joined text."""
    if not config.SPEECH_KEY or not config.SPEECH_REGION:
        raise ConfigurationError("AZURE_SPEECH_KEY or AZURE_SPEECH_REGION is not configured")
    if language not in SPEECH_LANGUAGES:
        raise ValueError(f"Unsupported transcription language: {language}")

    speech_config = speechsdk.SpeechConfig(subscription=config.SPEECH_KEY, region=config.SPEECH_REGION)
    speech_config.speech_recognition_language = SPEECH_LANGUAGES[language]
    speech_config.set_property(speechsdk.PropertyId.SpeechServiceConnection_InitialSilenceTimeoutMs, "10000")
    speech_config.set_property(speechsdk.PropertyId.SpeechServiceConnection_EndSilenceTimeoutMs, "2000")
    audio_config = speechsdk.audio.AudioConfig(filename=path_wav)
    recognizer = speechsdk.SpeechRecognizer(speech_config=speech_config, audio_config=audio_config)

    chunks: List[str] = []
    done = False
    cancel_reason = ""
    cancel_kind = None

    def on_recognized(evt):
        res = evt.result
        if res.reason == speechsdk.ResultReason.RecognizedSpeech:
            t = (res.text or "").strip()
            if t:
                chunks.append(t)
        elif res.reason == speechsdk.ResultReason.NoMatch:
            logger.warning("NoMatch: speech not recognized.")

    def on_canceled(evt):
        nonlocal done, cancel_reason, cancel_kind
        cancel_kind = getattr(evt, "reason", None)
        cancel_reason = f"{cancel_kind} | {getattr(evt, 'error_details', '')}"
        done = True
        if cancel_kind == speechsdk.CancellationReason.EndOfStream:
            logger.info("Recognition canceled with EndOfStream (normal for file input).")
        else:
            logger.warning("Recognition canceled: %s", cancel_reason)

    def on_stopped(evt):
        nonlocal done
        done = True

    recognizer.recognized.connect(on_recognized)
    recognizer.canceled.connect(on_canceled)
    recognizer.session_stopped.connect(on_stopped)

    recognizer.start_continuous_recognition_async().get()

    dur_s = max(0.0, get_audio_duration(path_wav))
    cushion = max(5.0, min(15.0, dur_s * 0.25))
    deadline = time.time() + min(300.0, max(5.0, dur_s + cushion))
    while not done and time.time() < deadline:
        time.sleep(0.1)

    try:
        fut = recognizer.stop_continuous_recognition_async()
        with concurrent.futures.ThreadPoolExecutor() as executor:
            executor.submit(fut.get).result(timeout=10)
    except concurrent.futures.TimeoutError:
        logger.warning("Stop recognition timed out, forcing exit")

    if cancel_kind and cancel_kind != speechsdk.CancellationReason.EndOfStream:
        raise ProviderError(f"Speech recognition canceled: {cancel_reason}")

    return " ".join(chunks).strip()

def transcribe_file(src_path: str, language: str = "de") -> str:
    """Convert, chunk and transcribe an uploaded audio file."""
    wav_path = convert_to_wav_any(src_path)
    chunks = []
    try:
        chunks = split_wav(wav_path, chunk_sec=60)
        t0 = time.time()
        texts = [recognize_wav(c, language) for c in chunks]
        logger.info("Transcribed %d chunk(s) in %d ms", len(chunks), int((time.time()-t0)*1000))
    finally:
        for path in chunks + [wav_path]:
            try:
                os.remove(path)
            except OSError:
                pass

    transcript = " ".join(t for t in texts if t).strip()
    if not transcript:
        raise ProviderError("Transcription failed: no speech recognized")
    return transcript
