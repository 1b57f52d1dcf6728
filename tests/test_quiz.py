# tests/test_quiz.py
"""
Tests for quiz.py - @quiz blocks and quiz definitions
"""
import pytest
from pathlib import Path

from coursegraph.errors import ConfigDeserializationError, InvalidAnnotationSyntax
from coursegraph.inject import InjectState, default_registry
from coursegraph.markdown_parse import parse_md
from coursegraph.models import Quiz
from coursegraph.quiz import parse_quiz, placeholder, render_quiz
from coursegraph.state import StagedItem


QUIZ_BLOCK = '''```toml
question = "What does `len([1, 2])` return?"

[[answers]]
text = "`2`"
correct = true
response = "Right, *two* items."

[[answers]]
text = "`1`"
```
'''


@pytest.fixture
def staged():
    return StagedItem("loops")


@pytest.fixture
def state(md, staged):
    return InjectState(article_id="loops", source=Path("loops/article.md"), staging=staged, md=md)


class TestParseQuiz:
    """Tests for parse_quiz()"""

    def test_valid_quiz(self):
        quiz = parse_quiz('question = "Q"\n[[answers]]\ntext = "A"\ncorrect = true\n', Path("quiz.toml"))

        assert quiz.question == "Q"
        assert quiz.answers[0].correct is True
        assert quiz.answers[0].response == ""

    def test_requires_a_correct_answer(self):
        with pytest.raises(ConfigDeserializationError):
            parse_quiz('question = "Q"\n[[answers]]\ntext = "A"\n', Path("quiz.toml"))

    def test_requires_answers(self):
        with pytest.raises(ConfigDeserializationError):
            parse_quiz('question = "Q"\nanswers = []\n', Path("quiz.toml"))

    def test_unknown_field_rejected(self):
        with pytest.raises(ConfigDeserializationError):
            parse_quiz(
                'question = "Q"\npoints = 3\n[[answers]]\ntext = "A"\ncorrect = true\n',
                Path("quiz.toml"),
            )

    def test_invalid_toml(self):
        with pytest.raises(ConfigDeserializationError) as exc_info:
            parse_quiz('question = \n', Path("quiz.toml"))

        assert exc_info.value.context["file"] == "quiz.toml"


class TestRenderQuiz:
    def test_markdown_rendered(self, md):
        quiz = Quiz.model_validate({
            "question": "Pick **one**",
            "answers": [{"text": "`a`", "correct": True, "response": "*yes*"}],
        })

        rendered = render_quiz(quiz, md)

        assert rendered.question == "<p>Pick <strong>one</strong></p>\n"
        assert rendered.answers[0].text == "<code>a</code>"
        assert rendered.answers[0].response == "<em>yes</em>"
        # original is untouched
        assert quiz.question == "Pick **one**"


class TestQuizAnnotation:
    """@quiz;<id> inside markdown"""

    def test_quiz_is_registered_and_replaced(self, md, state, staged):
        html = parse_md("Intro.\n\n@quiz;len-1\n" + QUIZ_BLOCK + "\nOutro.\n", default_registry(), state)

        assert html == (
            "<p>Intro.</p>\n"
            '<div class="quiz" data-quiz-id="len-1"></div>\n'
            "<p>Outro.</p>\n"
        )
        quiz = staged.quizzes[("loops", "len-1")]
        assert quiz.question == "<p>What does <code>len([1, 2])</code> return?</p>\n"
        assert quiz.answers[0].response == "Right, <em>two</em> items."
        assert [a.correct for a in quiz.answers] == [True, False]

    def test_two_quizzes_in_one_file(self, md, state, staged):
        parse_md("@quiz;a\n" + QUIZ_BLOCK + "\n@quiz;b\n" + QUIZ_BLOCK, default_registry(), state)

        assert set(staged.quizzes) == {("loops", "a"), ("loops", "b")}

    def test_duplicate_quiz_id(self, md, state):
        with pytest.raises(ConfigDeserializationError) as exc_info:
            parse_md("@quiz;a\n" + QUIZ_BLOCK + "\n@quiz;a\n" + QUIZ_BLOCK, default_registry(), state)

        assert "used twice" in exc_info.value.message

    def test_quiz_needs_id(self, md, state):
        with pytest.raises(InvalidAnnotationSyntax):
            parse_md("@quiz\n" + QUIZ_BLOCK, default_registry(), state)

    def test_quiz_id_must_be_valid(self, md, state):
        with pytest.raises(InvalidAnnotationSyntax):
            parse_md("@quiz;a.b\n" + QUIZ_BLOCK, default_registry(), state)

    def test_bad_quiz_body(self, md, state, staged):
        with pytest.raises(ConfigDeserializationError):
            parse_md('@quiz;a\n```toml\nquestion = "Q"\n```\n', default_registry(), state)

        assert staged.quizzes == {}


def test_placeholder_escapes_id():
    token = placeholder('x"y')

    assert token.type == "html_block"
    assert 'data-quiz-id="x&quot;y"' in token.content
