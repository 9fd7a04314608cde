"""Tests for denormalized counter adjustment and reconciliation."""

import logging

import pytest
from sqlalchemy import update

from devhub.models import Profile, Project, ProjectLike, Snippet
from devhub.services import counters


def _set(db_session, model, entity_id, **values) -> None:
    db_session.execute(update(model).where(model.id == entity_id).values(**values))
    db_session.commit()


def test_increment_and_decrement(db_session, test_project) -> None:
    counters.increment(db_session, counters.PROJECT_LIKES, test_project.id)
    counters.increment(db_session, counters.PROJECT_LIKES, test_project.id)
    counters.decrement(db_session, counters.PROJECT_LIKES, test_project.id)
    db_session.commit()

    assert counters.read(db_session, counters.PROJECT_LIKES, test_project.id) == 1


def test_decrement_clamps_at_zero(db_session, test_project) -> None:
    counters.decrement(db_session, counters.PROJECT_LIKES, test_project.id)
    counters.decrement(db_session, counters.PROJECT_LIKES, test_project.id)
    db_session.commit()

    assert counters.read(db_session, counters.PROJECT_LIKES, test_project.id) == 0


def test_read_clamps_negative_stored_value(db_session, test_snippet) -> None:
    _set(db_session, Snippet, test_snippet.id, likes_count=-3)

    assert counters.read(db_session, counters.SNIPPET_LIKES, test_snippet.id) == 0


def test_decrement_repairs_negative_stored_value(db_session, test_snippet) -> None:
    _set(db_session, Snippet, test_snippet.id, likes_count=-3)

    counters.decrement(db_session, counters.SNIPPET_LIKES, test_snippet.id)
    db_session.commit()

    db_session.expire_all()
    assert db_session.get(Snippet, test_snippet.id).likes_count == 0


@pytest.mark.parametrize("value, expected", [(5, 5), (0, 0), (-1, 0), (None, 0)])
def test_clamp(value, expected) -> None:
    assert counters.clamp(value) == expected


def test_adjust_rejects_steps_larger_than_one(db_session, test_project) -> None:
    with pytest.raises(ValueError):
        counters.adjust(db_session, counters.PROJECT_LIKES, test_project.id, 2)


def test_counter_ref_rejects_unknown_column() -> None:
    with pytest.raises(ValueError):
        counters.CounterRef(Project, "title")


def test_adjust_missing_entity_reports_no_rows(db_session, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="devhub.services.counters"):
        assert counters.increment(db_session, counters.PROJECT_LIKES, "missing") == 0
    assert "not adjusted" in caplog.text


def test_recount_overwrites_from_source_rows(db_session, test_project, other_user, third_user) -> None:
    db_session.add_all(
        [
            ProjectLike(user_id=other_user.id, project_id=test_project.id),
            ProjectLike(user_id=third_user.id, project_id=test_project.id),
        ]
    )
    _set(db_session, Project, test_project.id, likes_count=17)

    assert counters.recount(db_session, counters.PROJECT_LIKES, test_project.id) == 2
    db_session.commit()
    assert counters.read(db_session, counters.PROJECT_LIKES, test_project.id) == 2


def test_live_count_requires_a_source() -> None:
    with pytest.raises(ValueError):
        counters.live_count(None, counters.PROJECT_VIEWS, "p1")


def test_reconcile_all_reports_and_fixes_drift(db_session, test_user, other_user, caplog) -> None:
    _set(db_session, Profile, test_user.id, followers_count=3)

    with caplog.at_level(logging.WARNING, logger="devhub.services.counters"):
        drifts = counters.reconcile_all(db_session)
    db_session.commit()

    assert [(d.table, d.column, d.entity_id, d.stored, d.actual) for d in drifts] == [
        ("profiles", "followers_count", test_user.id, 3, 0)
    ]
    assert "Counter drift" in caplog.text
    assert counters.read(db_session, counters.FOLLOWERS, test_user.id) == 0


def test_reconcile_all_without_fix_leaves_values(db_session, test_user) -> None:
    _set(db_session, Profile, test_user.id, following_count=2)

    drifts = counters.reconcile_all(db_session, fix=False)

    assert len(drifts) == 1
    assert counters.read(db_session, counters.FOLLOWING, test_user.id) == 2
