"""Structured sales summaries from an agent's post-call voice note."""
import logging
from datetime import datetime, timezone
from typing import Optional

from cockpit.services.llm_service import LLMCompletion, complete

logger = logging.getLogger(__name__)

SUMMARY_PROVIDER = "langdock"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 3000

_INPUT_CONTEXT = """IMPORTANT CONTEXT ABOUT THE INPUT:
- The input is NOT a verbatim call transcript.
- The input IS a spoken voice note recorded by the sales agent AFTER the call.
- The voice note describes what was discussed with the customer.
- You MUST extract and structure the information based on the agent's summary."""

_DATE_FORMAT_RULE = """DATE & TIME OUTPUT FORMAT RULE (MANDATORY):
- When writing dates and times in the final summary, use the following format ONLY:
  YYYY-MM-DD HH:mm
- Do NOT include milliseconds.
- Do NOT include "T".
- Do NOT include timezone indicators such as "Z".
- Example:
  Correct: 2025-12-22 10:55
  Incorrect: 2025-12-22T10:55:36.461Z"""

GERMAN_STRUCTURE = """1. Gesprächsheader (Pflicht)
- Datum & Uhrzeit:
- Wer hat mit wem gesprochen? (Name + Funktion beim Kunden)
- Art des Kontakts: Telefon / E-Mail / Besuch
- Kurz-Satz (Worum ging's?):

2. Kurze Zusammenfassung (Sales Summary)
3–4 Bullet Points:
- Was wollte der Kunde?
- Wie groß ist das Potenzial?
- Wie hoch die Abschlusschance?

3. Bedarf & Anwendung
- Was braucht der Kunde für welches Projekt – und bis wann?

4. Entscheider & Ablauf
- Wer entscheidet?
- Wer nutzt es?
- Wer bestellt?
- Wo steht der Kunde gerade? (Interesse / Angebot / Entscheidung)

5. Markt- & Produktwissen
- Was habe ich Neues über den Markt gelernt?
- Was habe ich Neues über die Anwendung unserer Produkte gelernt?

6. Abschlussrelevante Infos
- Wer sind die Wettbewerber?
- Entscheidungskriterien (Preis / Lieferzeit / Qualität / etc.)
- Timeline (Wann entscheidet der Kunde, wann braucht er Ware?)

7. To-Dos & Nächster Schritt
- Meine Zusagen
- Kunden-Zusagen
- Interne To-Dos
- Nächster Kontakt (wann + wofür)"""

ENGLISH_STRUCTURE = """1. Conversation Header (Mandatory)
- Date & time:
- Who spoke with whom? (Name + function at the customer)
- Type of contact: Telephone / E-mail / Visit
- Short sentence (What was it about?):

2. Short Summary (Sales Summary)
3–4 bullet points:
- What did the customer want?
- How big is the potential?
- How high is the chance of closing?

3. Needs & Application
- What does the customer need for which project – and by when?

4. Decision Makers & Process
- Who decides?
- Who uses it?
- Who orders?
- Where does the customer currently stand? (Interest / Offer / Decision)

5. Market & Product Knowledge
- What have I learned that is new about the market?
- What have I learned that is new about the application of our products?

6. Deal-Relevant Information
- Who are the competitors?
- Decision criteria (Price / Delivery time / Quality / etc.)
- Timeline (When will the customer decide, when do they need goods?)

7. To-Dos & Next Step
- My commitments
- Customer commitments
- Internal to-dos
- Next contact (when + for what)"""


def _reference_time(now: Optional[datetime]) -> str:
    now = now or datetime.now(timezone.utc)
    return now.isoformat()


def build_german_prompt(transcript: str, customer_name: str, interlocutor: str, now: Optional[datetime] = None) -> str:
    return f"""You are a professional sales operations assistant for EMC.

{_INPUT_CONTEXT}

CURRENT DATE & TIME CONTEXT:
- Today's date and time (reference for all relative dates): {_reference_time(now)}
- Assume this datetime as the absolute reference point when resolving expressions like
  "heute", "morgen", "nächste Woche", "nächsten Mittwoch", "in zwei Tagen", etc.

TEMPORAL NORMALIZATION RULES (MANDATORY):
- Any relative date or time mentioned in the voice note MUST be converted into an exact date.
- Examples:
  - "morgen" -> exact date based on today's date
  - "nächsten Mittwoch" -> next calendar Wednesday after today
  - "in zwei Wochen" -> exact date
  - "morgen um 17 Uhr" -> exact date + time
- If a date is mentioned without a time, omit the time.
- If a time is mentioned without a date, infer the nearest reasonable future date.
- If neither date nor time can be reasonably inferred, write exactly: "Nicht erwähnt".
- Do NOT keep relative expressions in the final output.

{_DATE_FORMAT_RULE}

ADDITIONAL STRUCTURED INPUTS:
- Client / Customer name: {customer_name}
- Interlocutor (person spoken to at customer): {interlocutor}

USAGE RULE FOR STRUCTURED INPUTS:
- If these inputs are provided, you MUST use them to populate the relevant fields.
- If they are empty or missing, extract the information from the voice note.
- If neither source provides the information, write exactly: "Nicht erwähnt".

LANGUAGE OUTPUT RULE:
- The entire output MUST be written ONLY in German.
- Do NOT use any English words under ANY circumstances.

GERMAN SECTION TITLES (MUST BE USED EXACTLY, NO MODIFICATIONS ALLOWED):
{GERMAN_STRUCTURE}

STRICT STRUCTURE ENFORCEMENT:
- You MUST use the structure above EXACTLY as shown.
- You MUST NOT modify, rename, reorder, shorten, or expand ANY line.
- You MUST ONLY fill in content AFTER the colons.
- You MUST NEVER replace a heading or bullet with an answer.
- If any information is missing, you MUST write exactly: "Nicht erwähnt".
- You MUST preserve all punctuation, formatting, and bullet points exactly.

SPRACHNOTIZ ZUR ANALYSE:
{transcript}

FINAL OUTPUT RULES:
- Output ONLY the completed EMC summary.
- NO explanations.
- NO comments.
- NO extra text.
- NO repetition of these rules.
- NO structure changes."""


def build_english_prompt(transcript: str, customer_name: str, interlocutor: str, now: Optional[datetime] = None) -> str:
    return f"""You are a professional sales operations assistant for E-M-C direct GmbH & Co. KG.

{_INPUT_CONTEXT}

CURRENT DATE & TIME CONTEXT:
- Today's date and time (reference for all relative dates): {_reference_time(now)}
- Assume this datetime as the absolute reference point when resolving expressions like
  "today", "tomorrow", "next week", "next Wednesday", "in two days", etc.

TEMPORAL NORMALIZATION RULES (MANDATORY):
- Any relative date or time mentioned in the voice note MUST be converted into an exact date.
- Examples:
  - "Tomorrow" -> calculate exact date based on today's date
  - "Next Wednesday" -> calculate the next calendar Wednesday after today
  - "In two weeks" -> calculate the exact date
  - "Tomorrow at 5pm" -> calculate exact date + time
- If a date is mentioned without a time, omit the time.
- If a time is mentioned without a date, infer the nearest reasonable future date.
- If neither date nor time can be reasonably inferred, write: "Not mentioned".
- Do NOT keep relative expressions in the final output.

{_DATE_FORMAT_RULE}

ADDITIONAL STRUCTURED INPUTS:
- Client / Customer name: {customer_name}
- Interlocutor (person spoken to at customer): {interlocutor}

USAGE RULE FOR STRUCTURED INPUTS:
- If these inputs are provided, you MUST use them to populate the relevant fields.
- If they are empty or missing, extract the information from the voice note.
- If neither source provides the information, write exactly: "Not mentioned".

LANGUAGE OUTPUT RULE:
- The entire output MUST be written ONLY in English.
- Do NOT use any German words under ANY circumstances.

STRICT STRUCTURE ENFORCEMENT:
- You MUST use the structure below EXACTLY as shown.
- You MUST NOT modify, rename, reorder, shorten, or expand ANY section title or bullet.
- You MUST ONLY fill in content AFTER the colons.
- You MUST NEVER replace a heading or bullet with an answer.
- If any information is missing, you MUST write exactly: "Not mentioned".
- You MUST preserve all punctuation, formatting, and bullet points exactly.

STRUCTURE (DO NOT MODIFY ANY LINE BELOW):

{ENGLISH_STRUCTURE}

VOICE NOTE TO ANALYZE:
{transcript}

FINAL OUTPUT RULES:
- Output ONLY the completed EMC summary.
- Do NOT add explanations.
- Do NOT add comments.
- Do NOT add extra text.
- Do NOT repeat these rules.
- Do NOT change the structure."""


def build_summary_prompt(transcript: str, language: str, customer_name: str, interlocutor: str, now: Optional[datetime] = None) -> str:
    if language in ("german", "de"):
        return build_german_prompt(transcript, customer_name, interlocutor, now)
    return build_english_prompt(transcript, customer_name, interlocutor, now)


def generate_summary(transcript: str, language: str, customer_name: str, interlocutor: str, model: str) -> LLMCompletion:
    if not transcript or not transcript.strip():
        raise ValueError("Transcript is empty")
    prompt = build_summary_prompt(transcript, language, customer_name or "", interlocutor or "")
    logger.info("Generating call summary (model=%s, language=%s, chars=%d)", model, language, len(transcript))
    return complete(prompt, SUMMARY_PROVIDER, model, temperature=DEFAULT_TEMPERATURE, max_tokens=DEFAULT_MAX_TOKENS)
