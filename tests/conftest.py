"""
Global test configuration: environment isolation, markers and quiz fixtures.
"""

import os

from bs4 import BeautifulSoup
import pytest

from quiz_worker import AnswerCandidate, FrozenConfig, SearchResult

# --- Environment Isolation (Autouse) ---


@pytest.fixture(autouse=True)
def isolate_quiz_worker_env(request, monkeypatch, tmp_path):
    """Ensure a clean QUIZ_WORKER_* environment and neutral config files.

    - Removes all QUIZ_WORKER_* variables and the DEBUG toggle
    - Points the home config path to an isolated temp file
    - Runs the test from an empty directory so no pyproject.toml is found

    Escape hatch: @pytest.mark.allow_env_pollution keeps the environment as is.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("QUIZ_WORKER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)

    fake_home_dir = tmp_path / "home_config_isolated"
    fake_home_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("QUIZ_WORKER_CONFIG_HOME", str(fake_home_dir / "quiz_worker.toml"))

    workdir = tmp_path / "cwd"
    workdir.mkdir(exist_ok=True)
    monkeypatch.chdir(workdir)


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioral guarantees of the worker and configuration",
        "integration: Component integration tests over full quiz documents",
        "allow_env_pollution: Keep the real QUIZ_WORKER_* environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Quiz documents ---

QUIZ_HTML = """
<div class="quiz">
  <div class="question" id="q1">
    <div class="title">What is the capital of France?</div>
    <label class="option"><input type="radio" name="q1" value="a"> A. Berlin</label>
    <label class="option"><input type="radio" name="q1" value="b"> B. Paris</label>
    <label class="option"><input type="radio" name="q1" value="c"> C. Madrid</label>
    <label class="option"><input type="radio" name="q1" value="d"> D. Rome</label>
  </div>
  <div class="question" id="q2">
    <div class="title">Which are primary colors?</div>
    <label class="option"><input type="checkbox" name="q2" value="a"> A. Red</label>
    <label class="option"><input type="checkbox" name="q2" value="b"> B. Green</label>
    <label class="option"><input type="checkbox" name="q2" value="c"> C. Blue</label>
    <label class="option"><input type="checkbox" name="q2" value="d"> D. Yellow</label>
  </div>
  <div class="question" id="q3">
    <div class="title">The earth is flat.</div>
    <label class="option"><input type="radio" name="q3" value="t"> 正确</label>
    <label class="option"><input type="radio" name="q3" value="f"> 错误</label>
  </div>
  <div class="question" id="q4">
    <div class="title">Water boils at ___ degrees and freezes at ___ degrees.</div>
    <div class="option"><input type="text" name="q4-1"></div>
    <div class="option"><input type="text" name="q4-2"></div>
  </div>
</div>
"""

ANSWERS = {
    "What is the capital of France?": "Paris",
    "Which are primary colors?": "Red#Blue#Yellow",
    "The earth is flat.": "错",
    "Water boils at ___ degrees and freezes at ___ degrees.": "100#0",
}


@pytest.fixture
def quiz_html():
    """Raw HTML of a four-question quiz (single, multiple, judgement, completion)."""
    return QUIZ_HTML


@pytest.fixture
def quiz_document():
    """Parsed quiz document."""
    return BeautifulSoup(QUIZ_HTML, "html.parser")


@pytest.fixture
def question_roots(quiz_document):
    """The four question roots in document order."""
    return quiz_document.select(".question")


@pytest.fixture
def quiz_elements():
    """Extraction spec for the quiz document."""
    return {"title": ".title", "options": ".option"}


@pytest.fixture
def fast_config():
    """Configuration without inter-unit delay and with a short timeout."""
    return FrozenConfig(timeout=1.0, retry=2, period=0, stop_when_error=False)


def _search_result(*answers, name="test"):
    """Build a SearchResult with one candidate per answer value."""
    return SearchResult(
        name=name,
        answers=tuple(AnswerCandidate(question="q", answer=a) for a in answers),
    )


@pytest.fixture
def make_search_result():
    """Factory: ``make_search_result("a", None, name="src")`` -> SearchResult."""
    return _search_result


@pytest.fixture
def title_answerer():
    """Answerer that looks the question title up in a fixed answer table."""

    async def answerer(elements, _type, _ctx):
        title = elements["title"][0].get_text(strip=True)
        return [_search_result(ANSWERS[title], name="table")]

    return answerer
