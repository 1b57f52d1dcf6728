"""
quiz.py - The @quiz annotation and standalone quiz.toml items

Quizzes are written as TOML:

    question = "What does `len([1, 2])` return?"

    [[answers]]
    text = "2"
    correct = true
    response = "Right, two items."

    [[answers]]
    text = "1"
    response = "Count again."

Question, answer text and responses are markdown and are rendered to HTML
at compile time. The quiz itself is rendered client-side; the article only
keeps an empty mount point carrying the quiz id.
"""

from __future__ import annotations

import html
from pathlib import Path
from typing import List

import toml
from markdown_it import MarkdownIt
from markdown_it.token import Token
from pydantic import ValidationError

from coursegraph.errors import InvalidAnnotationSyntax, config_error
from coursegraph.inject import FencedCode, InjectState
from coursegraph.models import Quiz
from coursegraph.security_utils import is_valid_id_segment

QUIZ_TAG = "quiz"
QUIZ_BLOCK = FencedCode("toml")

# Key used for quizzes that are items of their own (quiz.toml)
STANDALONE_QUIZ_ID = "main"


def parse_quiz(text: str, source: Path) -> Quiz:
    """Deserialize a quiz definition from TOML text."""
    try:
        return Quiz.model_validate(toml.loads(text))
    except (ValueError, ValidationError) as e:
        raise config_error(source, e, what="quiz")


def render_quiz(quiz: Quiz, md: MarkdownIt) -> Quiz:
    """Return a copy of ``quiz`` with its markdown fields rendered to HTML."""
    answers = [
        answer.model_copy(update={
            "text": md.renderInline(answer.text),
            "response": md.renderInline(answer.response),
        })
        for answer in quiz.answers
    ]
    return quiz.model_copy(update={"question": md.render(quiz.question), "answers": answers})


def placeholder(quiz_id: str) -> Token:
    token = Token("html_block", "", 0, block=True)
    token.content = f'<div class="quiz" data-quiz-id="{html.escape(quiz_id, quote=True)}"></div>\n'
    return token


def inject_quiz(block: List[Token], data: str, state: InjectState) -> List[Token]:
    """Handler for ``@quiz;<id>`` followed by a ```toml block."""
    if not data:
        raise InvalidAnnotationSyntax(
            message="@quiz needs an id",
            suggestion="Write it as @quiz;<id>, e.g. @quiz;loops-1",
            context={"file": str(state.source)},
        )
    if not is_valid_id_segment(data):
        raise InvalidAnnotationSyntax(
            message=f"Invalid quiz id: {data!r}",
            suggestion="Quiz ids may only contain letters, digits, '-' and '_'",
            context={"file": str(state.source)},
        )

    fence = block[0]
    quiz = render_quiz(parse_quiz(fence.content, state.source), state.md)
    state.staging.add_quiz(state.article_id, data, quiz, source=state.source)
    return [placeholder(data)]
