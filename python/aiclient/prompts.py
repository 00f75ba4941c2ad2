"""Provider-agnostic prompt templates for the task methods.

Each function is pure: task inputs and options in, one prompt string out.
The client wraps the string as a single user message; providers handle
conversion to their own wire format.

Option values outside the documented set are not rejected. They are
either passed through verbatim or replaced by the default (summary
length falls back to "medium").
"""

import re

from aiclient.types import (
    AnswerQuestionOptions,
    BulletSummaryOptions,
    ExtractKeywordsOptions,
    FixGrammarOptions,
    RewriteOptions,
    SummarizeOptions,
    TranslateOptions,
)

SUMMARY_LENGTHS = frozenset({"short", "medium", "long"})
DEFAULT_SUMMARY_LENGTH = "medium"

_VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def render_summarize(text: str, options: SummarizeOptions | None = None) -> str:
    options = options or SummarizeOptions()
    length = options.length if options.length in SUMMARY_LENGTHS else DEFAULT_SUMMARY_LENGTH
    language = f" in {options.language}" if options.language else ""
    tone = f" with a {options.tone} tone" if options.tone else ""

    return (
        f"Please summarize the following text{language}{tone}. "
        f"Make it {length} in length:\n\n{text}"
    )


def render_fix_grammar(text: str, options: FixGrammarOptions | None = None) -> str:
    options = options or FixGrammarOptions()
    language = f" (language: {options.language})" if options.language else ""
    keep_tone = "Maintain the original tone and style." if options.keep_tone else ""

    return (
        "Please correct the grammar, spelling, and punctuation in the following "
        f"text{language}. {keep_tone}\n\n{text}"
    )


def render_translate(
    text: str, target_language: str, options: TranslateOptions | None = None
) -> str:
    options = options or TranslateOptions()
    source = f" from {options.source_language}" if options.source_language else ""
    preserve = (
        " Preserve formatting, line breaks, and structure." if options.preserve_formatting else ""
    )

    return f"Translate the following text{source} to {target_language}.{preserve}\n\n{text}"


def render_answer_question(
    context: str, question: str, options: AnswerQuestionOptions | None = None
) -> str:
    options = options or AnswerQuestionOptions()
    max_length = f" (maximum {options.max_length} words)" if options.max_length else ""

    return (
        f"Based on the following context, answer the question{max_length}:\n\n"
        f"Context:\n{context}\n\nQuestion: {question}\n\nAnswer:"
    )


def render_rewrite(text: str, style: str, options: RewriteOptions | None = None) -> str:
    options = options or RewriteOptions()
    tone = f" with a {options.tone} tone" if options.tone else ""
    preserve = " Maintain approximately the same length." if options.preserve_length else ""

    return f"Rewrite the following text in a {style} style{tone}.{preserve}\n\n{text}"


def render_bullet_summary(text: str, options: BulletSummaryOptions | None = None) -> str:
    options = options or BulletSummaryOptions()
    max_bullets = f" (maximum {options.max_bullets} bullets)" if options.max_bullets else ""
    language = f" in {options.language}" if options.language else ""

    return f"Summarize the following text into bullet points{max_bullets}{language}:\n\n{text}"


def render_extract_keywords(text: str, options: ExtractKeywordsOptions | None = None) -> str:
    options = options or ExtractKeywordsOptions()
    max_keywords = f" (maximum {options.max_keywords} keywords)" if options.max_keywords else ""
    min_length = (
        f" (minimum {options.min_length} characters per keyword)" if options.min_length else ""
    )

    return (
        "Extract the most important keywords or keyphrases from the following "
        f"text{max_keywords}{min_length}. Return only a comma-separated list of "
        f"keywords:\n\n{text}"
    )


def render_detect_language(text: str) -> str:
    return (
        "Detect the language of the following text and return only the ISO 639-1 "
        f'language code (e.g., "en", "fr", "es"):\n\n{text}'
    )


def render_classify_sentiment(text: str) -> str:
    return (
        'Classify the sentiment of the following text as "positive", "neutral", or '
        '"negative". Return your response in the format: SENTIMENT|SCORE where '
        "SENTIMENT is one of the three options and SCORE is a number between 0 and 1:"
        f"\n\n{text}"
    )


def render_custom_prompt(prompt: str, variables: dict[str, str] | None = None) -> str:
    """Replace every ``{{name}}`` placeholder that has a value in ``variables``.

    Placeholders without a value are left as they are.
    """
    if not variables:
        return prompt

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        return variables[name] if name in variables else match.group(0)

    return _VARIABLE_PATTERN.sub(_substitute, prompt)
