from __future__ import annotations

import json
import logging
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import List, Optional

import typer

from gradtensor.budget import BudgetExceeded, GasMeter, budget_scope
from gradtensor.config import (
    TomlTable,
    budget_defaults,
    coherence_defaults,
    coherence_degrees,
    engine_defaults,
    gas_limit,
    merge_payload,
    objects_table,
    proof_mode_enabled,
)
from gradtensor.exceptions import MissingCapability, NeverThrown
from gradtensor.invariants import proof_mode_scope
from gradtensor.monoidal.brackets import left_nested
from gradtensor.monoidal.graded import GradedObject
from gradtensor.monoidal.indexing import index_set_from_name
from gradtensor.monoidal.structure import GradedMonoidalStructure, build_monoidal_structure
from gradtensor.order_contract import OrderPolicy, normalize_policy, order_policy
from gradtensor.scenarios import DEFAULT_OBJECTS, category_from_name, objects_from_table
from gradtensor.schema import CheckRequest, ComponentDTO

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)

EXIT_VIOLATIONS = 1
EXIT_INVALID_INPUT = 2
EXIT_MISSING_CAPABILITY = 2
EXIT_BUDGET = 3


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine activity."),
) -> None:
    """Build graded tensor products and check their coherence laws."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _describe_invalid(exc: NeverThrown) -> str:
    payload = exc.marker_payload
    details = ", ".join(f"{key}={value!r}" for key, value in payload.env.items())
    return f"{payload.reason} ({details})" if details else payload.reason


@contextmanager
def _cli_errors():
    try:
        yield
    except typer.BadParameter as exc:
        typer.secho(exc.format_message(), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=EXIT_INVALID_INPUT) from exc
    except MissingCapability as exc:
        typer.echo(f"missing capability: {exc}", err=True)
        raise typer.Exit(code=EXIT_MISSING_CAPABILITY) from exc
    except BudgetExceeded as exc:
        typer.echo(f"budget exceeded: {exc}", err=True)
        raise typer.Exit(code=EXIT_BUDGET) from exc


@contextmanager
def _engine_scope(request: CheckRequest):
    with ExitStack() as stack:
        stack.enter_context(proof_mode_scope(request.proof_mode))
        stack.enter_context(order_policy(request.order_policy))
        stack.enter_context(budget_scope(GasMeter(limit=request.gas_limit)))
        yield


def _check_request(
    *,
    root: Path,
    config: Optional[Path],
    category: Optional[str],
    index: Optional[str],
    degrees: Optional[str],
) -> tuple[CheckRequest, TomlTable]:
    engine = engine_defaults(root=root, config_path=config)
    coherence = merge_payload(
        {"category": category, "index": index, "degrees": degrees},
        coherence_defaults(root=root, config_path=config),
    )
    rejected: list[str] = []
    requested = coherence_degrees(coherence, rejected)
    if rejected:
        raise typer.BadParameter(
            f"degrees must be integers, got {', '.join(map(repr, rejected))}",
            param_hint="--degrees",
        )
    try:
        policy = normalize_policy(str(engine.get("order_policy", OrderPolicy.SORT.value)))
    except NeverThrown as exc:
        raise typer.BadParameter(
            _describe_invalid(exc), param_hint="[engine] order_policy"
        ) from exc
    request = CheckRequest(
        category=str(coherence.get("category", "finset")),
        index_set=str(coherence.get("index", "nat")),
        degrees=requested,
        proof_mode=proof_mode_enabled(engine),
        order_policy=policy.value,
        gas_limit=gas_limit(budget_defaults(root=root, config_path=config)),
    )
    return request, objects_table(root=root, config_path=config)


def _build(
    request: CheckRequest, table: TomlTable
) -> tuple[GradedMonoidalStructure, dict[str, GradedObject]]:
    try:
        category = category_from_name(request.category)
        index_set = index_set_from_name(request.index_set)
    except NeverThrown as exc:
        raise typer.BadParameter(_describe_invalid(exc), param_hint="--category/--index") from exc
    structure = build_monoidal_structure(category, index_set)
    try:
        objects = objects_from_table(
            category, index_set, table or DEFAULT_OBJECTS[category.name]
        )
    except NeverThrown as exc:
        raise typer.BadParameter(_describe_invalid(exc), param_hint="[objects]") from exc
    return structure, objects


def _sample_degrees(structure: GradedMonoidalStructure, degrees: List[int]) -> list[int]:
    kept = [degree for degree in degrees if structure.index_set.contains(degree)]
    dropped = [degree for degree in degrees if degree not in kept]
    if dropped:
        logger.warning(
            "degrees %s are outside index set %s and were skipped",
            dropped,
            structure.index_set.name,
        )
    if not kept:
        raise typer.BadParameter(
            f"none of the degrees {degrees} lies in index set {structure.index_set.name}",
            param_hint="--degrees",
        )
    return kept


@app.command()
def check(
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    category: Optional[str] = typer.Option(None, "--category", help="finset or finvect."),
    index: Optional[str] = typer.Option(None, "--index", help="nat, int or cyclic:<n>."),
    degrees: Optional[str] = typer.Option(
        None, "--degrees", help="Comma-separated degrees to check."
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report."),
    fail_on_violations: bool = typer.Option(
        True, "--fail-on-violations/--no-fail-on-violations"
    ),
) -> None:
    """Run every coherence obligation on the configured graded objects."""
    with _cli_errors():
        request, table = _check_request(
            root=root, config=config, category=category, index=index, degrees=degrees
        )
        with _engine_scope(request):
            structure, objects = _build(request, table)
            result = structure.check_all(
                list(objects.values()),
                _sample_degrees(structure, list(request.degrees or [])),
            )
    payload = result.to_dto()
    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(
            json.dumps(payload.model_dump(), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
    for failure in result.failures:
        typer.echo(f"FAIL {failure.describe()}")
    typer.echo(
        f"{request.category} over {request.index_set}: "
        f"{len(result.obligations)} obligations, {len(result.failures)} failed"
    )
    if fail_on_violations and not result.ok:
        raise typer.Exit(code=EXIT_VIOLATIONS)


@app.command()
def show(
    objects: str = typer.Option("X,Y,Z", "--objects", help="Labels, left-bracketed."),
    degree: int = typer.Option(0, "--degree"),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    category: Optional[str] = typer.Option(None, "--category"),
    index: Optional[str] = typer.Option(None, "--index"),
    json_output: bool = typer.Option(False, "--json"),
) -> None:
    """Print one component of a left-bracketed tensor and its summands."""
    labels = _split_csv(objects)
    with _cli_errors():
        request, table = _check_request(
            root=root, config=config, category=category, index=index, degrees=str(degree)
        )
        with _engine_scope(request):
            structure, available = _build(request, table)
            if not structure.index_set.contains(degree):
                raise typer.BadParameter(
                    f"{degree} is outside index set {structure.index_set.name}",
                    param_hint="--degree",
                )
            missing = [label for label in labels if label not in available]
            if not labels or missing:
                raise typer.BadParameter(
                    f"unknown graded objects: {', '.join(missing) or '(none given)'}",
                    param_hint="--objects",
                )
            tree = left_nested(*(available[label] for label in labels))
            witness = structure.brackets.witness(tree, degree)
            render = structure.category.render_obj
            component = ComponentDTO(
                label=structure.brackets.graded(tree).label,
                degree=repr(degree),
                component=render(witness.obj),
                summands={repr(tag): render(obj) for tag, obj in witness.summands.items()},
            )
    if json_output:
        typer.echo(json.dumps(component.model_dump(), indent=2, sort_keys=True))
        return
    typer.echo(f"{component.label}({component.degree}) = {component.component}")
    for tag, summand in component.summands.items():
        typer.echo(f"  {tag}: {summand}")
