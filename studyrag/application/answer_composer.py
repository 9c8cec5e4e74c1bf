"""
Name: Answer Composer

Responsibilities:
  - Build a grounded prompt from ranked chunks (context + question + instruction)
  - Pick the output mode (prose, flashcards, quiz) once from the question
  - Call the Completer with a fixed system prompt and generation limits
  - Extract and validate structured JSON, degrading to prose on failure

Collaborators:
  - domain.services.Completer: language model capability
  - domain.entities: Answer, OutputMode, RetrievedChunk
  - pydantic: validation of the {type, data} payload

Constraints:
  - No Completer call when nothing was retrieved (fixed fallback answer)
  - Structured parse failures never raise to the caller
  - No caching across calls

Notes:
  - Context blocks: "[Chunk {rank}] (Similarity: {pct}%)" joined by "\\n\\n---\\n\\n"
"""

import json
from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..domain.entities import Answer, OutputMode, RetrievedChunk
from ..domain.services import Completer
from ..logger import logger

FALLBACK_ANSWER = (
    "I could not find any relevant information in the knowledge base "
    "to answer your question."
)

CONTEXT_DELIMITER = "\n\n---\n\n"

SYSTEM_PROMPT = """You are a helpful assistant that answers questions based on the provided context.

INSTRUCTIONS:
1. Only use information from the provided context to answer the question.
2. If the context doesn't contain enough information to answer, say so clearly.
3. Cite specific parts of the context when relevant.
4. Be concise and direct in your responses.
5. If asked about something not in the context, acknowledge the limitation.

Do not make up information or use knowledge outside of the provided context."""

BASE_INSTRUCTION = "Please answer the question based only on the context provided above."

_NO_FENCES = (
    "Do not include any markdown formatting (like ```json) outside the JSON. "
    "Return ONLY the raw JSON string."
)

_ESCAPE_NEWLINES = """CRITICAL:
- The response must be valid parseable JSON.
- Escape all newlines in strings as \\n.
- Do NOT use real newlines inside string values."""

FLASHCARDS_INSTRUCTION = f"""IMPORTANT: The user wants flashcards. You MUST return the response in valid JSON format.
The flashcard deck should include:
1. A few cards that summarize key concepts using bullet points.
2. Cards with specific questions and answers to test knowledge.

{_ESCAPE_NEWLINES}

Structure:
{{
    "type": "flashcards",
    "data": [
        {{ "question": "Key Concept: [Topic]", "answer": "- Point 1\\n- Point 2\\n- Point 3" }},
        {{ "question": "What is...?", "answer": "It is..." }}
    ]
}}
{_NO_FENCES}"""

QUIZ_INSTRUCTION = f"""IMPORTANT: The user wants a quiz. You MUST return the response in valid JSON format.

{_ESCAPE_NEWLINES}

Structure:
{{
    "type": "quiz",
    "data": [
        {{ "question": "Question 1", "answer": "Answer 1" }},
        {{ "question": "Question 2", "answer": "Answer 2" }}
    ]
}}
{_NO_FENCES}"""

_MODE_INSTRUCTIONS = {
    OutputMode.PROSE: None,
    OutputMode.FLASHCARDS: FLASHCARDS_INSTRUCTION,
    OutputMode.QUIZ: QUIZ_INSTRUCTION,
}


class StudyCard(BaseModel):
    question: str
    answer: str


class StudySet(BaseModel):
    type: Literal["flashcards", "quiz"]
    data: List[StudyCard]


def build_context(retrieved: Sequence[RetrievedChunk]) -> str:
    """R: Label each chunk with its rank and similarity, in retrieved order."""
    return CONTEXT_DELIMITER.join(
        f"[Chunk {rank}] (Similarity: {item.similarity * 100:.1f}%)\n{item.chunk.content}"
        for rank, item in enumerate(retrieved, start=1)
    )


def build_instruction(mode: OutputMode) -> str:
    """R: Grounding instruction, plus the JSON contract in structured modes."""
    extra = _MODE_INSTRUCTIONS[mode]
    if extra is None:
        return BASE_INSTRUCTION
    return f"{BASE_INSTRUCTION}\n\n{extra}"


def build_user_prompt(question: str, context: str, mode: OutputMode) -> str:
    return (
        f"CONTEXT:\n{context}\n\n---\n\n"
        f"QUESTION: {question}\n\n"
        f"{build_instruction(mode)}"
    )


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    R: Parse the outermost {...} span of a model response.

    Fences around the object fall outside the span; fences inside string
    values are kept. Returns None when no object parses.
    """
    cleaned = text or ""
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first == -1 or last <= first:
        return None
    try:
        parsed = json.loads(cleaned[first : last + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_structured(text: str, mode: OutputMode) -> Optional[Dict[str, Any]]:
    """
    R: Validated {type, data} payload for the requested mode, or None.
    """
    payload = extract_json_object(text)
    if payload is None:
        return None
    try:
        study_set = StudySet.model_validate(payload)
    except PydanticValidationError:
        return None
    if study_set.type != mode.value:
        return None
    return study_set.model_dump()


class AnswerComposer:
    """
    R: Turns a question plus ranked chunks into an Answer.
    """

    def __init__(
        self,
        completer: Completer,
        *,
        temperature: float = 0.2,
        max_tokens: int = 1024,
        fallback_answer: str = FALLBACK_ANSWER,
    ):
        self.completer = completer
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.fallback_answer = fallback_answer

    def compose(self, question: str, retrieved: Sequence[RetrievedChunk]) -> Answer:
        """
        R: Compose a grounded answer.

        Args:
            question: Non-empty user question
            retrieved: Ranked chunks (may be empty)

        Returns:
            Answer with text, sources (= retrieved), token usage and mode

        Raises:
            CompletionError: If the Completer fails
        """
        mode = OutputMode.from_question(question)

        if not retrieved:
            logger.info("No context retrieved, returning fallback answer")
            return Answer(text=self.fallback_answer, sources=[], mode=mode)

        context = build_context(retrieved)
        user_prompt = build_user_prompt(question, context, mode)

        logger.debug(
            "Generating answer",
            extra={
                "question_chars": len(question),
                "context_chunks": len(retrieved),
                "context_chars": len(context),
                "mode": mode.value,
            },
        )

        completion = self.completer.complete(
            SYSTEM_PROMPT,
            user_prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        text = completion.text
        structured = None
        if mode.is_structured:
            structured = parse_structured(text, mode)
            if structured is None:
                logger.warning(
                    "Structured output could not be parsed, returning raw text",
                    extra={"mode": mode.value, "answer_chars": len(text)},
                )
            else:
                text = json.dumps(structured, ensure_ascii=False)

        return Answer(
            text=text,
            sources=list(retrieved),
            token_usage=completion.usage,
            mode=mode,
            structured=structured,
        )
