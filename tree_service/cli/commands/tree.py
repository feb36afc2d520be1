"""Tree query commands against an existing adjacency-list table.

The table is reflected at runtime, so any table with a primary key and a
self-referencing parent column can be queried without declaring a model.

Example:bash
    # Every root
    tree-service tree --table categories roots

    # Ancestors of node 7, as JSON
    tree-service tree --table categories --format json ancestors 7

    # Two levels below node 1, flat with depths
    tree-service tree --table categories descendants 1 --to-depth 2 --raw

    # Is node 9 inside the subtree of 1 or 4? (exit status only)
    tree-service tree --table categories within --src 1 --src 4 --candidate 9 -q
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

import click
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.ext.declarative import DeferredReflection
from sqlalchemy.orm import DeclarativeBase

from tree_service.cli.utils import coro, emit_json, error, header, info
from tree_service.core.database.exceptions import TreeError
from tree_service.core.database.hierarchy import DescendantOptions, TreeConfig, TreeQueryEngine
from tree_service.core.database.hierarchy.materialize import NestedTree
from tree_service.core.database.validation import IdentifierValidationError, validate_identifier
from tree_service.core.settings import DatabaseSettings, get_tree_settings
from tree_service.infra.database import create_engine_from_settings, session_scope
from tree_service.infra.logging import set_log_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TreeCommandOptions:
    """Options shared by every ``tree`` subcommand."""

    table: str
    database_url: str | None
    primary_key: str | None
    foreign_key: str | None
    order: str | None
    max_depth: int | None
    label: str | None
    output_format: str

    def tree_config(self) -> TreeConfig:
        """``TreeSettings`` defaults overridden by explicit command options."""
        base = TreeConfig.from_settings(get_tree_settings())
        return TreeConfig(
            primary_key=self.primary_key or base.primary_key,
            foreign_key=self.foreign_key or base.foreign_key,
            order=self.order if self.order is not None else base.order,
            max_depth=self.max_depth or base.max_depth,
            cascade_on_delete=base.cascade_on_delete,
        )

    @property
    def as_json(self) -> bool:
        return self.output_format == "json"


async def reflect_model(db_engine: AsyncEngine, table_name: str) -> type[Any]:
    """Map ``table_name`` to a throwaway declarative class by reflection.

    Each call uses a fresh registry, so the same table can be reflected
    repeatedly in one process.

    Raises:
        sqlalchemy.exc.NoSuchTableError: If the table does not exist.
        sqlalchemy.exc.ArgumentError: If the table has no primary key.
    """

    class ReflectedBase(DeclarativeBase):
        pass

    class Reflected(DeferredReflection):
        __abstract__ = True

    class_name = "".join(part.capitalize() for part in table_name.split("_")) or "Node"
    model = type(class_name, (Reflected, ReflectedBase), {"__tablename__": table_name})

    async with db_engine.connect() as conn:
        await conn.run_sync(Reflected.prepare)

    logger.debug("Reflected table", extra={"table": table_name, "columns": list(model.__table__.c.keys())})
    return model


def coerce_ids(engine: TreeQueryEngine[Any], values: Iterable[str]) -> list[Any]:
    """Convert command-line ids to the Python type of the identity column."""
    column = engine.tree.table.c[engine.tree.pk]
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return list(values)

    try:
        return [python_type(value) for value in values]
    except (TypeError, ValueError) as exc:
        msg = f"node ids must be {python_type.__name__} values for column {column.name!r}"
        raise click.BadParameter(msg) from exc


# =============================================================================
# Rendering
# =============================================================================


def node_as_dict(node: Any) -> dict[str, Any]:
    return {attr.key: getattr(node, attr.key) for attr in inspect(type(node)).column_attrs}


def node_label(engine: TreeQueryEngine[Any], node: Any, label: str | None) -> str:
    ident = engine.identity(node)
    if label is None:
        return str(ident)
    return f"{ident}  {getattr(node, label, '')}"


def nested_as_json(tree: NestedTree) -> list[dict[str, Any]]:
    return [{"node": node_as_dict(node), "children": nested_as_json(sub)} for node, sub in tree.items()]


def echo_nested(engine: TreeQueryEngine[Any], tree: NestedTree, label: str | None, level: int = 0) -> None:
    for node, sub in tree.items():
        click.echo(f"{'  ' * level}{node_label(engine, node, label)}")
        echo_nested(engine, sub, label, level + 1)


def echo_nodes(opts: TreeCommandOptions, engine: TreeQueryEngine[Any], nodes: list[Any]) -> None:
    if opts.as_json:
        emit_json([node_as_dict(node) for node in nodes])
        return
    if not nodes:
        info("No nodes")
        return
    for node in nodes:
        click.echo(node_label(engine, node, opts.label))


# =============================================================================
# Execution
# =============================================================================


async def run_query[R](
    opts: TreeCommandOptions,
    query: Callable[[TreeQueryEngine[Any], AsyncSession], Awaitable[R]],
) -> tuple[TreeQueryEngine[Any], R]:
    """Reflect the table, build an engine and run ``query`` in one session.

    Tree and database errors are reported and turned into exit status 1.
    """
    settings = DatabaseSettings(dsn=opts.database_url) if opts.database_url else None
    db_engine = create_engine_from_settings(settings)
    try:
        model = await reflect_model(db_engine, opts.table)
        engine = TreeQueryEngine(model, opts.tree_config())
        if opts.label is not None and opts.label not in engine.tree.table.c:
            msg = f"label column {opts.label!r} not found on table {opts.table!r}"
            raise click.BadParameter(msg, param_hint="--label")
        async with session_scope(db_engine) as session:
            return engine, await query(engine, session)
    except (TreeError, SQLAlchemyError) as e:
        logger.debug("Tree command failed", exc_info=True)
        error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    finally:
        await db_engine.dispose()


# =============================================================================
# Commands
# =============================================================================


def _validate_table(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        return validate_identifier(value, identifier_type="table", allow_reserved=True)
    except IdentifierValidationError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.group(name="tree")
@click.option("--table", required=True, envvar="TREE_TABLE", callback=_validate_table, help="Table holding the tree")
@click.option("--database-url", default=None, help="SQLAlchemy async URL (default: DB_DSN / conf/db.yaml)")
@click.option("--primary-key", default=None, help="Identity column (default: TREE_PRIMARY_KEY or 'id')")
@click.option("--foreign-key", default=None, help="Parent column (default: TREE_FOREIGN_KEY or 'parent_id')")
@click.option("--order", default=None, help="Sibling order, e.g. 'position, name desc'")
@click.option("--max-depth", type=click.IntRange(min=1), default=None, help="Recursion ceiling")
@click.option("--label", default=None, help="Column shown next to ids in text output")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.pass_context
def tree(
    ctx: click.Context,
    table: str,
    database_url: str | None,
    primary_key: str | None,
    foreign_key: str | None,
    order: str | None,
    max_depth: int | None,
    label: str | None,
    output_format: str,
) -> None:
    """Hierarchical queries over an adjacency-list table."""
    ctx.ensure_object(dict)
    ctx.obj["tree"] = TreeCommandOptions(
        table=table,
        database_url=database_url,
        primary_key=primary_key,
        foreign_key=foreign_key,
        order=order,
        max_depth=max_depth,
        label=label,
        output_format=output_format,
    )
    set_log_context(table=table, command=ctx.invoked_subcommand)


pass_options = click.make_pass_decorator(dict)


def _options(obj: dict[str, Any]) -> TreeCommandOptions:
    return obj["tree"]


@tree.command()
@pass_options
@coro
async def roots(obj: dict[str, Any]) -> None:
    """List every root node."""
    opts = _options(obj)
    engine, nodes = await run_query(opts, lambda engine, session: engine.roots(session))
    echo_nodes(opts, engine, nodes)


@tree.command()
@click.argument("node_id")
@pass_options
@coro
async def root(obj: dict[str, Any], node_id: str) -> None:
    """Show the root of NODE_ID's tree (the node itself for a root)."""
    opts = _options(obj)

    async def query(engine: TreeQueryEngine[Any], session: AsyncSession) -> Any:
        (ident,) = coerce_ids(engine, [node_id])
        return await engine.node(ident).root_or_self(session)

    engine, node = await run_query(opts, query)
    if node is None:
        error(f"Node {node_id} not found")
        sys.exit(1)
    echo_nodes(opts, engine, [node])


@tree.command()
@click.argument("node_id")
@pass_options
@coro
async def ancestors(obj: dict[str, Any], node_id: str) -> None:
    """List the ancestors of NODE_ID, root first."""
    opts = _options(obj)

    async def query(engine: TreeQueryEngine[Any], session: AsyncSession) -> list[Any]:
        (ident,) = coerce_ids(engine, [node_id])
        return await engine.ancestors(session, ident)

    engine, nodes = await run_query(opts, query)
    echo_nodes(opts, engine, nodes)


@tree.command()
@click.argument("node_id")
@pass_options
@coro
async def children(obj: dict[str, Any], node_id: str) -> None:
    """List the direct children of NODE_ID in sibling order."""
    opts = _options(obj)

    async def query(engine: TreeQueryEngine[Any], session: AsyncSession) -> list[Any]:
        (ident,) = coerce_ids(engine, [node_id])
        return await engine.children(session, ident)

    engine, nodes = await run_query(opts, query)
    echo_nodes(opts, engine, nodes)


@tree.command()
@click.argument("node_id")
@pass_options
@coro
async def depth(obj: dict[str, Any], node_id: str) -> None:
    """Print the number of hops from NODE_ID to its root."""
    opts = _options(obj)

    async def query(engine: TreeQueryEngine[Any], session: AsyncSession) -> int | None:
        (ident,) = coerce_ids(engine, [node_id])
        return await engine.depth(session, ident)

    _, value = await run_query(opts, query)
    if value is None:
        error(f"Node {node_id} not found")
        sys.exit(1)
    if opts.as_json:
        emit_json({"id": node_id, "depth": value})
    else:
        click.echo(value)


@tree.command()
@click.argument("node_ids", nargs=-1)
@click.option("--include-self/--exclude-self", default=False, help="Include the start nodes")
@click.option("--raw", is_flag=True, help="Flat (node, depth) listing instead of a nested tree")
@click.option("--to-depth", type=click.IntRange(min=0), default=None, help="Keep levels up to N below the start")
@click.option("--at-depth", type=click.IntRange(min=0), default=None, help="Keep only level N below the start")
@pass_options
@coro
async def descendants(
    obj: dict[str, Any],
    node_ids: tuple[str, ...],
    include_self: bool,
    raw: bool,
    to_depth: int | None,
    at_depth: int | None,
) -> None:
    """Show the subtrees below NODE_IDS (every root when none are given)."""
    opts = _options(obj)
    options = DescendantOptions(include_self=include_self, raw=raw, to_depth=to_depth, at_depth=at_depth)

    async def query(engine: TreeQueryEngine[Any], session: AsyncSession) -> Any:
        idents = coerce_ids(engine, node_ids)
        return await engine.nodes_and_descendants(session, *idents, options=options)

    engine, result = await run_query(opts, query)

    if raw:
        if opts.as_json:
            emit_json([{"node": node_as_dict(node), "depth": level} for node, level in result])
            return
        for node, level in result:
            click.echo(f"{level}\t{node_label(engine, node, opts.label)}")
        return

    if opts.as_json:
        emit_json(nested_as_json(result))
    elif result:
        echo_nested(engine, result, opts.label)
    else:
        info("No nodes")


@tree.command()
@click.option("--src", "sources", multiple=True, required=True, help="Subtree root id (repeatable)")
@click.option("--candidate", "candidates", multiple=True, required=True, help="Candidate id (repeatable)")
@click.option("-q", "--quiet", is_flag=True, help="No output; exit status 0 if any candidate is within")
@pass_options
@coro
async def within(
    obj: dict[str, Any],
    sources: tuple[str, ...],
    candidates: tuple[str, ...],
    quiet: bool,
) -> None:
    """Report which candidates lie inside the subtrees of the source nodes."""
    opts = _options(obj)

    if quiet:

        async def check(engine: TreeQueryEngine[Any], session: AsyncSession) -> bool:
            return await engine.is_within(session, coerce_ids(engine, sources), coerce_ids(engine, candidates))

        _, found = await run_query(opts, check)
        sys.exit(0 if found else 1)

    async def query(engine: TreeQueryEngine[Any], session: AsyncSession) -> list[Any]:
        return await engine.nodes_within(session, coerce_ids(engine, sources), coerce_ids(engine, candidates))

    engine, nodes = await run_query(opts, query)
    if opts.as_json:
        emit_json({"within": bool(nodes), "nodes": [node_as_dict(node) for node in nodes]})
        return
    header("within" if nodes else "not within")
    for node in nodes:
        click.echo(node_label(engine, node, opts.label))
