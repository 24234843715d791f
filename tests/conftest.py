import random

import pytest

from trivia_app.core.game_manager import GameManager
from trivia_app.core.models import QuestionSet, SetQuestion
from trivia_app.core.nickname_suggester import NicknameSuggester
from trivia_app.core.services.question_set_catalog import QuestionSetCatalog
from trivia_app.core.services.roster import Roster


def make_set(set_id="general", name="General", correct=(0, 1, 2)):
    return QuestionSet(
        id=set_id,
        name=name,
        questions=tuple(
            SetQuestion(prompt=f"Question {i + 1}?", options=("A", "B", "C", "D"), correct_index=c)
            for i, c in enumerate(correct)
        ),
    )


@pytest.fixture()
def general_set():
    return make_set()


@pytest.fixture()
def catalog(general_set):
    return QuestionSetCatalog([general_set, make_set("short", "Short", correct=(1,))])


@pytest.fixture()
def suggester():
    return NicknameSuggester(random.Random(1234))


@pytest.fixture()
def roster(suggester):
    return Roster(suggester)


@pytest.fixture()
def manager(catalog, suggester):
    game_manager = GameManager(catalog=catalog, suggester=suggester)
    yield game_manager
    game_manager.close()
