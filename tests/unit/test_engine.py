"""Unit tests for Finder, GetRequest and scalar coercion."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import pytest

from row_mapper.core.cancel import CancelToken
from row_mapper.core.engine import coerce_scalar
from row_mapper.core.exceptions import (
    ExecutionError,
    NoPrimaryKeyError,
    NoRowsError,
    NoTableNameError,
    QueryCancelledError,
    WrongTypeError,
)
from row_mapper.core.session import Session
from row_mapper.mapping.introspect import column


@dataclass
class User:
    id: int = column("id,pk,autoincrement,table=users", default=0)
    name: str = column("name", default="")
    karma: Optional[float] = column("karma", default=None)
    suspended: bool = column("suspended", default=False)
    created: Optional[datetime.datetime] = column("created", default=None)


@dataclass(frozen=True)
class FrozenUser:
    id: int = column("id,pk,autoincrement,table=users", default=0)
    name: str = column("name", default="")
    karma: Optional[float] = column("karma", default=None)


@dataclass
class DecimalUser:
    id: int = column("id,pk,autoincrement,table=users", default=0)
    name: str = column("name", default="")
    karma: Optional[Decimal] = column("karma", default=None)


@dataclass
class UserName:
    name: str = ""


@dataclass
class Keyless:
    name: str = column("name,table=users", default="")


class TestSingle:
    def test_returns_new_instance(self, session: Session) -> None:
        user = session.find("SELECT * FROM users WHERE id=:id", {"id": 1}).single(User)
        assert user.id == 1
        assert user.name == "Oliver"
        assert user.karma == 42.13
        assert user.suspended is False
        assert user.created == datetime.datetime(2013, 1, 24, 18, 14, 15)

    def test_fills_instance_in_place(self, session: Session) -> None:
        target = User(name="placeholder")
        result = session.find("SELECT * FROM users WHERE id=2").single(target)
        assert result is target
        assert target.name == "Sandra"
        assert target.karma is None
        assert target.suspended is True

    def test_binds_instance_params(self, session: Session) -> None:
        user = session.find("SELECT * FROM users WHERE name=:name", User(name="Mark")).single(User)
        assert user.id == 3

    def test_no_rows(self, session: Session) -> None:
        with pytest.raises(NoRowsError):
            session.find("SELECT * FROM users WHERE id=999").single(User)

    def test_projection_and_extra_columns(self, session: Session) -> None:
        user = session.find("SELECT name, 1 AS extra FROM users WHERE id=1").single(User)
        assert user.name == "Oliver"
        assert user.id == 0

    def test_type_without_table(self, session: Session) -> None:
        row = session.find("SELECT name FROM users WHERE id=3").single(UserName)
        assert row.name == "Mark"

    def test_driver_error_is_wrapped(self, session: Session) -> None:
        with pytest.raises(ExecutionError, match="no_such_table") as exc_info:
            session.find("SELECT * FROM no_such_table").single(User)
        assert exc_info.value.sql == "SELECT * FROM no_such_table"
        assert exc_info.value.__cause__ is not None


class TestAll:
    def test_all_rows(self, session: Session) -> None:
        users = session.find("SELECT * FROM users ORDER BY id").all(User)
        assert [u.name for u in users] == ["Oliver", "Sandra", "Mark"]
        assert all(isinstance(u, User) for u in users)

    def test_list_hint(self, session: Session) -> None:
        users = session.find("SELECT * FROM users").all(list[User])
        assert len(users) == 3

    def test_zero_rows_is_empty(self, session: Session) -> None:
        assert session.find("SELECT * FROM users WHERE id < 0").all(User) == []


class TestScalar:
    def test_count(self, session: Session) -> None:
        assert session.count("SELECT COUNT(*) FROM users") == 3

    def test_count_with_param(self, session: Session) -> None:
        assert session.count("SELECT COUNT(*) FROM orders WHERE user_id=:id", {"id": 1}) == 2

    def test_untyped(self, session: Session) -> None:
        assert session.find("SELECT name FROM users WHERE id=1").scalar() == "Oliver"

    def test_typed(self, session: Session) -> None:
        assert session.find("SELECT karma FROM users WHERE id=1").scalar(float) == 42.13

    def test_optional_null(self, session: Session) -> None:
        assert session.find("SELECT karma FROM users WHERE id=2").scalar(Optional[float]) is None

    def test_null_for_required_type(self, session: Session) -> None:
        with pytest.raises(WrongTypeError):
            session.find("SELECT karma FROM users WHERE id=2").scalar(float)

    def test_wrong_type(self, session: Session) -> None:
        with pytest.raises(WrongTypeError, match="expected int"):
            session.count("SELECT name FROM users WHERE id=1")

    def test_count_out_of_range(self, session: Session) -> None:
        with pytest.raises(WrongTypeError, match="int64"):
            session.count("SELECT '9223372036854775808'")

    def test_no_rows(self, session: Session) -> None:
        with pytest.raises(NoRowsError):
            session.find("SELECT id FROM users WHERE id=999").scalar(int)


class TestCoerceScalar:
    @pytest.mark.parametrize(
        ("value", "type_", "expected"),
        [
            (5, int, 5),
            ("12", int, 12),
            (Decimal("3"), int, 3),
            (3, float, 3.0),
            (1, bool, True),
            (12, str, "12"),
            ("2013-01-24 18:14:15", datetime.datetime, datetime.datetime(2013, 1, 24, 18, 14, 15)),
            (None, Optional[int], None),
        ],
    )
    def test_accepted(self, value: object, type_: object, expected: object) -> None:
        assert coerce_scalar("q", value, type_) == expected

    @pytest.mark.parametrize(
        ("value", "type_"),
        [("abc", int), (True, int), (1.5, int), (2, bool), ("x", float), (None, str), ("x", datetime.date)],
    )
    def test_rejected(self, value: object, type_: object) -> None:
        with pytest.raises(WrongTypeError):
            coerce_scalar("q", value, type_)


class TestGet:
    def test_by_primary_key(self, session: Session) -> None:
        user = session.get(3).do(User)
        assert user.name == "Mark"

    def test_missing(self, session: Session) -> None:
        with pytest.raises(NoRowsError, match="id=42"):
            session.get(42).do(User)

    def test_requires_table(self, session: Session) -> None:
        with pytest.raises(NoTableNameError):
            session.get(1).do(UserName)

    def test_requires_primary_key(self, session: Session) -> None:
        with pytest.raises(NoPrimaryKeyError):
            session.get(1).do(Keyless)


class TestReadOnlyShapes:
    def test_frozen_dataclass_single(self, session: Session) -> None:
        user = session.find("SELECT * FROM users WHERE id=1").single(FrozenUser)
        assert user == FrozenUser(id=1, name="Oliver", karma=42.13)

    def test_frozen_dataclass_all(self, session: Session) -> None:
        users = session.find("SELECT * FROM users ORDER BY id").all(FrozenUser)
        assert [u.name for u in users] == ["Oliver", "Sandra", "Mark"]

    def test_frozen_dataclass_insert_writes_key(self, session: Session) -> None:
        user = FrozenUser(name="George")
        session.insert(user)
        assert user.id == 4

    def test_decimal_field_can_be_written_back(self, session: Session) -> None:
        user = session.get(1).do(DecimalUser)
        assert user.karma == 42.13
        assert session.update(user) == 1
        assert session.get(1).do(User).karma == 42.13


class TestDebugLogging:
    def test_statements_logged_at_debug(self, session: Session, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="row_mapper.core.engine"):
            session.find("SELECT * FROM users WHERE id=1").single(User)
        records = [r for r in caplog.records if "SQL:" in r.getMessage()]
        assert records and records[0].levelno == logging.DEBUG

    def test_debug_flag_raises_level(self, session: Session, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="row_mapper.core.engine"):
            session.find("SELECT * FROM users WHERE id=1").debug().single(User)
        assert any("SELECT * FROM users WHERE id=1" in r.getMessage() for r in caplog.records)

    def test_get_debug_raises_level(self, session: Session, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="row_mapper.core.engine"):
            session.get(1).debug().do(User)
        records = [r for r in caplog.records if "FROM users" in r.getMessage()]
        assert records and records[0].levelno == logging.INFO


class TestCancellation:
    def test_cancelled_before_execution(self, counting_session: Session) -> None:
        token = CancelToken()
        token.cancel()
        with pytest.raises(QueryCancelledError):
            counting_session.find("SELECT * FROM users").cancel_with(token).all(User)
        assert counting_session.connection.statements == []

    def test_interrupts_running_statement(self, session: Session) -> None:
        token = CancelToken(timeout=0.05)
        sql = (
            "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c WHERE x < 50000000) "
            "SELECT COUNT(*) FROM c"
        )
        with pytest.raises(QueryCancelledError):
            session.find(sql).cancel_with(token).scalar(int)

    def test_uncancelled_token_is_harmless(self, session: Session) -> None:
        token = CancelToken()
        assert session.find("SELECT COUNT(*) FROM users").cancel_with(token).scalar(int) == 3
