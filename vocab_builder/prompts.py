"""Prompt templates and response schemas for word lookup and quiz generation."""
from __future__ import annotations

WORD_DATA_SCHEMA = {
    "type": "object",
    "properties": {
        "word": {
            "type": "string",
            "description": "The vocabulary word.",
        },
        "partOfSpeech": {
            "type": "string",
            "description": "The word's primary part of speech, e.g. 'noun' or 'adjective'.",
        },
        "ipa": {
            "type": "string",
            "description": "The pronunciation in the International Phonetic Alphabet.",
        },
        "definition": {
            "type": "string",
            "description": "A comprehensive and accurate definition of the word from a trusted source.",
        },
        "exampleSentences": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": 2,
            "description": "At least two sentences that correctly use the word in context.",
        },
        "simplifiedExplanation": {
            "type": "string",
            "description": "An explanation of the word's meaning, simplified for the target grade level.",
        },
        "difficulty": {
            "type": "string",
            "enum": ["Easy", "Medium", "Hard"],
            "description": "How hard the word is for a student at the target grade level.",
        },
        "origin": {
            "type": "string",
            "description": "A one-sentence etymology of the word.",
        },
    },
    "required": ["word", "definition", "exampleSentences", "simplifiedExplanation", "difficulty"],
}

PARTIAL_WORD_SCHEMA = {
    "type": "object",
    "properties": {
        "exampleSentences": WORD_DATA_SCHEMA["properties"]["exampleSentences"],
        "simplifiedExplanation": WORD_DATA_SCHEMA["properties"]["simplifiedExplanation"],
    },
    "required": ["exampleSentences", "simplifiedExplanation"],
}

QUIZ_QUESTION_SCHEMA = {
    "type": "object",
    "properties": {
        "question": {
            "type": "string",
            "description": "The quiz question, e.g. 'What is the definition of ubiquitous?'",
        },
        "options": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": 4,
            "maxItems": 4,
            "description": "An array of 4 strings: one correct definition and three plausible "
                           "but incorrect definitions (distractors).",
        },
        "correctAnswer": {
            "type": "string",
            "description": "The correct definition, copied exactly from the options array.",
        },
    },
    "required": ["question", "options", "correctAnswer"],
}

WORD_DATA_PROMPT = """\
For the word "{word}", provide a definition, at least two example sentences, \
a simplified explanation suitable for a {audience_level} student, and a \
difficulty rating (Easy, Medium or Hard) for that student. Also give its part \
of speech, IPA pronunciation and a one-sentence origin. The definition should \
be from a trusted dictionary source.

Respond in this exact JSON format only, with no other text:
{{
  "word": "{word}",
  "partOfSpeech": "noun",
  "ipa": "/.../",
  "definition": "Dictionary definition",
  "exampleSentences": ["First sentence.", "Second sentence."],
  "simplifiedExplanation": "Explanation for a {audience_level}",
  "difficulty": "Medium",
  "origin": "Where the word comes from"
}}
"""

PARTIAL_WORD_PROMPT = """\
For the word "{word}", provide at least two new example sentences and a \
simplified explanation suitable for a {audience_level} student. Keep the \
sentences and the explanation at that student's reading level.

Respond in this exact JSON format only, with no other text:
{{
  "exampleSentences": ["First sentence.", "Second sentence."],
  "simplifiedExplanation": "Explanation for a {audience_level}"
}}
"""

QUIZ_QUESTION_PROMPT = """\
Given the following list of vocabulary words: [{word_list}]. Create a \
multiple-choice quiz question for the word "{word}". Provide one correct \
definition and three incorrect definitions (distractors) that are plausible \
for a {audience_level}. The correct definition should be "{definition}". The \
distractors could be definitions of other words in the provided list or \
common misconceptions. All four options must be different. Ensure the options \
are shuffled.

Respond in this exact JSON format only, with no other text:
{{
  "question": "What is the definition of {word}?",
  "options": ["option 1", "option 2", "option 3", "option 4"],
  "correctAnswer": "the correct option, copied exactly"
}}
"""


def format_word_list(words: list[str]) -> str:
    return ", ".join(words)
