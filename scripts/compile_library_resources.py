#!/usr/bin/env python3
"""
Library Resource Compilation CLI

Compiles one Android library's resources into a compiled resources archive and,
when both symbol outputs are requested, generates its R.txt and R class jar.

Commands:
    compile - Compile resource directories into an archive (and R files)
    inspect - List the units and entries of an existing archive

Examples:\n

    compile_library_resources.py compile --resources lib/res --output out/res.zip

    compile_library_resources.py compile --resources lib/res --output out/res.zip \\
        --manifest lib/AndroidManifest.xml --r-txt-out out/R.txt --class-jar-output out/R.jar

    compile_library_resources.py inspect out/res.zip
"""

import os
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from reslib.contexts.compiling import CompiledResources
from reslib.contexts.compiling.action import (
    CompileLibraryResourcesOptions,
    compile_library_resources,
)
from reslib.contexts.compiling.logger import setup_compiling_logger
from reslib.utils import now
from reslib.utils.config import load_compiler_config
from reslib.utils.exceptions import ReslibError

load_dotenv()


def default_log_dir() -> Path:
    """Per-invocation log directory under $LOGS_PATH (or outs/logs)."""
    return Path(os.getenv("LOGS_PATH", "outs/logs")) / f"compile_{now()}"


app = typer.Typer(
    help="Compile Android library resources into an archive and generate R files",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("compile")
def compile_command(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Compiled resources archive to write"),
    ],
    resources: Annotated[
        Optional[List[Path]],
        typer.Option("--resources", "-r", help="Resource directory (repeatable, in priority order)"),
    ] = None,
    manifest: Annotated[
        Optional[Path],
        typer.Option("--manifest", help="Library AndroidManifest.xml"),
    ] = None,
    package_path: Annotated[
        Optional[str],
        typer.Option("--package-path", help="Package path of the library (enables data binding)"),
    ] = None,
    data_binding_info_out: Annotated[
        Optional[Path],
        typer.Option("--data-binding-info-out", help="Where to write data binding metadata"),
    ] = None,
    package_for_r: Annotated[
        Optional[str],
        typer.Option("--package-for-r", help="Package of the generated R class (overrides manifest)"),
    ] = None,
    r_txt_out: Annotated[
        Optional[Path],
        typer.Option("--r-txt-out", help="Where to write R.txt"),
    ] = None,
    class_jar_output: Annotated[
        Optional[Path],
        typer.Option("--class-jar-output", help="Where to write the R class jar"),
    ] = None,
    srcjar_output: Annotated[
        Optional[Path],
        typer.Option("--srcjar-output", help="Where to write an R.java source jar"),
    ] = None,
    target_label: Annotated[
        Optional[str],
        typer.Option("--target-label", help="Library identity (also recorded in the jar manifest)"),
    ] = None,
    injecting_rule_kind: Annotated[
        Optional[str],
        typer.Option("--injecting-rule-kind", help="Rule kind recorded in the jar manifest"),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="YAML compiler configuration"),
    ] = None,
    overrides: Annotated[
        Optional[List[str]],
        typer.Option("--set", help="Configuration override as key=value (repeatable)"),
    ] = None,
    log_dir: Annotated[
        Optional[Path],
        typer.Option("--log-dir", help="Directory for the session log (default: $LOGS_PATH/compile_<timestamp>)"),
    ] = None,
):
    """
    Compile a library's resources.

    R.txt and the class jar are generated only when both --r-txt-out and
    --class-jar-output are given. Data binding runs only when --manifest,
    --package-path and --data-binding-info-out are all given.

    Examples:\n

        $ compile_library_resources.py compile -r lib/res -o out/res.zip

        $ compile_library_resources.py compile -r lib/res -o out/res.zip --set max_workers=4
    """
    try:
        config = load_compiler_config(config_path, overrides)
    except ReslibError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    log_file = setup_compiling_logger(log_dir or default_log_dir(), config)

    options = CompileLibraryResourcesOptions(
        resources=list(resources) if resources else None,
        output=output,
        manifest=manifest,
        package_path=package_path,
        data_binding_info_out=data_binding_info_out,
        package_for_r=package_for_r,
        r_txt_out=r_txt_out,
        class_jar_output=class_jar_output,
        srcjar_output=srcjar_output,
        target_label=target_label,
        injecting_rule_kind=injecting_rule_kind,
    )

    try:
        result = compile_library_resources(options, config)
    except KeyboardInterrupt:
        typer.secho("Interrupted", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=130)
    except (ReslibError, OSError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        typer.echo(f"  Log: {log_file}", err=True)
        raise typer.Exit(code=1)

    typer.secho("✓ Compilation succeeded", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Files: {result.unit_count}")
    typer.echo(f"  Entries: {result.entry_count}")
    typer.echo(f"  Archive: {result.archive}")
    if result.data_binding_info is not None:
        typer.echo(f"  Data binding: {result.data_binding_info}")
    if result.symbols is not None:
        typer.echo(f"  R.txt: {result.symbols.r_txt}")
        typer.echo(f"  Class jar: {result.symbols.class_jar}")
        if result.symbols.srcjar is not None:
            typer.echo(f"  Source jar: {result.symbols.srcjar}")
    typer.echo(f"  Log: {log_file}")


@app.command("inspect")
def inspect_command(
    archive: Annotated[
        Path,
        typer.Argument(help="Compiled resources archive"),
    ],
    verify: Annotated[
        bool,
        typer.Option("--verify", help="Check every payload against its recorded digest"),
    ] = False,
):
    """
    List the compiled units and resource entries of an archive.

    Examples:\n

        $ compile_library_resources.py inspect out/res.zip

        $ compile_library_resources.py inspect out/res.zip --verify
    """
    try:
        compiled = CompiledResources.open(archive)
        entries = list(compiled.iter_entries(include_payloads=verify, verify=verify))
    except (ReslibError, OSError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"\n{archive}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"Label: {compiled.label or '<unlabeled>'}")
    typer.echo(f"Units: {len(compiled.units)}")
    typer.echo("")

    current_blob = None
    for unit, entry in entries:
        if unit["blob"] != current_blob:
            current_blob = unit["blob"]
            typer.echo(f"{unit['source']} -> {current_blob}")
        qualifiers = f" [{entry.qualifiers}]" if entry.qualifiers else ""
        typer.echo(f"  {entry.resource_type.value}/{entry.name}{qualifiers}")


if __name__ == "__main__":
    app()
