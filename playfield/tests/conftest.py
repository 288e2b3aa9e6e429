import logging
import random

import pytest

from playfield.schemas.distribution import DistributionConfig, Item, Participant


@pytest.fixture(autouse=True)
def _isolate_config_override(monkeypatch):
    """Keep a developer's PLAYFIELD_CONFIG_PATH from leaking into tests."""
    monkeypatch.delenv("PLAYFIELD_CONFIG_PATH", raising=False)


@pytest.fixture
def participants():
    return [
        Participant(id="p1", name="Ada"),
        Participant(id="p2", name="Grace"),
        Participant(id="p3", name="Linus"),
    ]


@pytest.fixture
def items():
    return [
        Item(id="i1", content="Alpha", author_id="user1", created_at=1),
        Item(id="i2", content="Bravo", author_id="user2", created_at=2),
        Item(id="i3", content="Charlie", author_id="user3", created_at=3),
    ]


@pytest.fixture
def make_items():
    def _make(count, author_prefix="user"):
        return [
            Item(
                id=f"i{index}",
                content=f"Idea {index}",
                author_id=f"{author_prefix}{index}",
                created_at=index,
            )
            for index in range(1, count + 1)
        ]

    return _make


@pytest.fixture
def make_participants():
    def _make(count):
        return [Participant(id=f"p{index}", name=f"P{index}") for index in range(1, count + 1)]

    return _make


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def base_config():
    return DistributionConfig(
        mismatch_handling="auto",
        allow_multiple_per_participant=True,
        allow_empty_assignments=True,
    )


@pytest.fixture
def restore_logging():
    """Undo the handler and level changes `setup_logging` makes."""
    root = logging.getLogger()
    engine = logging.getLogger("playfield")
    saved = (
        list(root.handlers),
        root.level,
        list(engine.handlers),
        engine.level,
        engine.propagate,
    )
    yield
    for logger, handlers in ((root, saved[0]), (engine, saved[2])):
        for handler in list(logger.handlers):
            if handler not in handlers:
                logger.removeHandler(handler)
                handler.close()
        for handler in handlers:
            if handler not in logger.handlers:
                logger.addHandler(handler)
    root.setLevel(saved[1])
    engine.setLevel(saved[3])
    engine.propagate = saved[4]
