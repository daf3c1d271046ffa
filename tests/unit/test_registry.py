"""Unit tests for TypeRegistry."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Optional, Protocol

import pytest
from pydantic import BaseModel, Field

from row_mapper.core.exceptions import MappingError
from row_mapper.mapping.introspect import column
from row_mapper.mapping.registry import TypeRegistry


class Greeter(Protocol):
    def greet(self) -> str: ...


@dataclass
class Tweet:
    id: int = column("id,pk,serial,table=tweets", default=0)
    user_id: int = column("user_id", default=0)
    message: str = ""


@dataclass
class Author:
    id: int = column("id,primarykey,autoincrement,table=users", default=0)
    name: str = column("name", default="")
    karma: Optional[float] = column("karma", default=None)
    scratch: str = column("-", default="")
    nickname: str = ""
    callback: Callable[[], None] | None = None
    settings: dict[str, Any] = field(default_factory=dict)
    anything: Any = None
    greeter: Optional[Greeter] = None
    tweets: list[Tweet] = column("oneToMany=user_id", default_factory=list)
    limit: ClassVar[int] = 10


@dataclass
class Post:
    id: int = column("id,pk,table=posts", default=0)
    author_id: int = column("author_id", default=0)
    author: Optional[Author] = column("oneToOne=author_id", default=None)


class Product(BaseModel):
    id: int = Field(default=0, json_schema_extra={"db": "id,pk,autoincrement,table=products"})
    sku: str = Field(default="", json_schema_extra={"db": "sku"})
    note: str = Field(default="", json_schema_extra={"db": "-"})
    price: float = 0.0


@dataclass
class NoTable:
    id: int = column("id,pk", default=0)


class TestDescribe:
    def test_table_and_columns(self, registry: TypeRegistry) -> None:
        d = registry.describe(Author)
        assert d.table_name == "users"
        assert d.column_names == ["id", "name", "karma", "nickname"]
        assert d.field_names == ["id", "name", "karma", "scratch", "nickname"]

    def test_untagged_field_uses_field_name(self, registry: TypeRegistry) -> None:
        d = registry.describe(Author)
        assert d.fields_by_name["nickname"].column == "nickname"

    def test_primary_key_and_autoincrement(self, registry: TypeRegistry) -> None:
        d = registry.describe(Author)
        pk = d.primary_key()
        auto = d.autoincrement_field()
        assert pk is not None and pk.name == "id"
        assert auto is not None and auto.name == "id"

    def test_alias_modifiers(self, registry: TypeRegistry) -> None:
        d = registry.describe(Tweet)
        assert d.primary_key().column == "id"
        assert d.autoincrement_field().column == "id"
        assert d.table_name == "tweets"

    def test_transient_field(self, registry: TypeRegistry) -> None:
        d = registry.describe(Author)
        scratch = d.fields_by_name["scratch"]
        assert scratch.is_transient
        assert scratch.column == ""
        assert "" not in d.fields_by_column

    def test_ignored_kinds(self, registry: TypeRegistry) -> None:
        d = registry.describe(Author)
        for name in ("callback", "settings", "anything", "greeter", "limit"):
            assert name not in d.fields_by_name

    def test_one_to_many(self, registry: TypeRegistry) -> None:
        d = registry.describe(Author)
        assoc = d.one_to_many["tweets"]
        assert assoc.elem_type is Tweet
        assert assoc.foreign_key_field == "user_id"
        assert assoc.table_name(registry) == "tweets"
        assert assoc.column_name(registry) == "user_id"
        assert "tweets" not in d.fields_by_name

    def test_one_to_one(self, registry: TypeRegistry) -> None:
        d = registry.describe(Post)
        assoc = d.one_to_one["author"]
        assert assoc.target_type is Author
        assert assoc.table_name(registry) == "users"
        assert assoc.column_name(registry) == "id"
        assert d.association_names == ("author",)

    def test_missing_table_is_empty(self, registry: TypeRegistry) -> None:
        assert registry.describe(NoTable).table_name == ""

    def test_pydantic_model(self, registry: TypeRegistry) -> None:
        d = registry.describe(Product)
        assert d.table_name == "products"
        assert d.column_names == ["id", "sku", "price"]
        assert d.fields_by_name["note"].is_transient


class TestIdempotence:
    def test_same_object_returned(self, registry: TypeRegistry) -> None:
        assert registry.describe(Author) is registry.describe(Author)

    def test_containers_and_instances_share_descriptor(self, registry: TypeRegistry) -> None:
        d = registry.describe(Author)
        assert registry.describe(Optional[Author]) is d
        assert registry.describe(list[Author]) is d
        assert registry.describe(list[Optional[Author]]) is d
        assert registry.describe(tuple[Author, ...]) is d
        assert registry.describe(Author(name="x")) is d
        assert len(registry) == 1

    def test_concurrent_first_use(self) -> None:
        registry = TypeRegistry()
        barrier = threading.Barrier(8)
        results: list[object] = []

        def worker() -> None:
            barrier.wait()
            results.append(registry.describe(Post))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(results) == 8
        assert all(r is results[0] for r in results)


class TestErrors:
    def test_not_a_mapped_type(self, registry: TypeRegistry) -> None:
        with pytest.raises(MappingError, match="not a mapped type"):
            registry.describe(int)

    @pytest.mark.parametrize("tag", ["oneToMany", "oneToMany=", "oneToMany= "])
    def test_malformed_one_to_many(self, registry: TypeRegistry, tag: str) -> None:
        @dataclass
        class Broken:
            children: list[Tweet] = column(tag, default_factory=list)

        with pytest.raises(MappingError, match="Broken.children"):
            registry.describe(Broken)

    def test_malformed_one_to_one(self, registry: TypeRegistry) -> None:
        @dataclass
        class Broken:
            author: Optional[Author] = column("oneToOne", default=None)

        with pytest.raises(MappingError, match="oneToOne"):
            registry.describe(Broken)

    def test_one_to_one_unknown_local_field(self, registry: TypeRegistry) -> None:
        @dataclass
        class Broken:
            author: Optional[Author] = column("oneToOne=author_id", default=None)

        with pytest.raises(MappingError, match="author_id"):
            registry.describe(Broken)

    def test_duplicate_primary_key(self, registry: TypeRegistry) -> None:
        @dataclass
        class Broken:
            a: int = column("a,pk", default=0)
            b: int = column("b,primarykey", default=0)

        with pytest.raises(MappingError, match="more than one primary key"):
            registry.describe(Broken)

    def test_duplicate_autoincrement(self, registry: TypeRegistry) -> None:
        @dataclass
        class Broken:
            a: int = column("a,serial", default=0)
            b: int = column("b,autoincrement", default=0)

        with pytest.raises(MappingError, match="more than one autoincrement"):
            registry.describe(Broken)

    def test_unresolvable_annotation(self, registry: TypeRegistry) -> None:
        @dataclass
        class Broken:
            other: DoesNotExist = None  # type: ignore[name-defined]  # noqa: F821

        with pytest.raises(MappingError, match="Cannot resolve"):
            registry.describe(Broken)

    def test_table_last_occurrence_wins(self, registry: TypeRegistry) -> None:
        @dataclass
        class Renamed:
            id: int = column("id,pk,table=first", default=0)
            name: str = column("name,table=second", default="")

        assert registry.describe(Renamed).table_name == "second"
