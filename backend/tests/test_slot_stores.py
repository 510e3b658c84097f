from pathlib import Path

from sqlalchemy.orm import sessionmaker

from exam_digitizer.application.question_store import QuestionStore
from exam_digitizer.infra.db.session import DEFAULT_DB_PATH, build_engine, init_db, resolve_database_url
from exam_digitizer.infra.db.store import DatabaseSlotStore
from exam_digitizer.infra.storage.memory import InMemorySlotStore
from exam_digitizer.infra.storage.questions import QuestionRepository
from tests.fakes import make_question


def _session_factory(db_path: Path):
    engine = build_engine(f"sqlite:///{db_path}")
    init_db(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


def test_database_slot_store_overwrites_slot(tmp_path: Path):
    store = DatabaseSlotStore(_session_factory(tmp_path / "slots.db"))

    assert store.read("exam_questions") is None
    store.write("exam_questions", "[1]")
    store.write("exam_questions", "[2]")

    assert store.read("exam_questions") == "[2]"
    assert store.read("other") is None


def test_database_slot_store_persists_across_instances(tmp_path: Path):
    db_path = tmp_path / "persist.db"
    first = QuestionStore.open(QuestionRepository(DatabaseSlotStore(_session_factory(db_path))))
    first.append([make_question("a", "persisted question")])

    second = QuestionStore.open(QuestionRepository(DatabaseSlotStore(_session_factory(db_path))))

    assert second.questions == first.questions
    assert second.questions[0].text == "persisted question"


def test_repository_uses_named_slot():
    slots = InMemorySlotStore({"other": "[]"})
    repository = QuestionRepository(slots, slot_name="bank_b")

    repository.save([make_question("x", "in bank b")])

    assert set(slots.slots) == {"other", "bank_b"}
    assert [q.question_id for q in repository.load()] == ["x"]


def test_database_url_resolution(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert resolve_database_url(None) == f"sqlite:///{DEFAULT_DB_PATH}"
    assert resolve_database_url("sqlite:///bank.db") == f"sqlite:///{tmp_path.resolve() / 'bank.db'}"
    assert resolve_database_url("sqlite:///:memory:") == "sqlite:///:memory:"
    assert resolve_database_url("sqlite:////abs/bank.db") == "sqlite:////abs/bank.db"
