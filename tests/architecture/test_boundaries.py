from pytest_archon import archrule


def test_core_has_no_backend_imports() -> None:
    """
    Request parsing, ordering and page assembly work against the
    IQueryBuilder port only and must not import a persistence library.
    """
    (
        archrule("core_is_backend_free")
        .match("cqrs_ddd_pagination*")
        .exclude("cqrs_ddd_pagination.adapters*")
        .should_not_import("sqlalchemy*")
        .should_not_import("cqrs_ddd_pagination.adapters*")
        .check("cqrs_ddd_pagination")
    )


def test_memory_adapter_independence() -> None:
    """
    The in-memory adapter must stay usable without the sqlalchemy extra.
    """
    (
        archrule("memory_adapter_independence")
        .match("cqrs_ddd_pagination.adapters.memory")
        .should_not_import("sqlalchemy*")
        .should_not_import("cqrs_ddd_pagination.adapters.sqlalchemy*")
        .check("cqrs_ddd_pagination")
    )
