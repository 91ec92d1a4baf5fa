import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from azsdkgen.codegen.codegen import Codegen
from azsdkgen.codegen.spec_index import SpecIndex
from azsdkgen.config import get_config
from azsdkgen.exceptions import AzSdkGenError

console = Console()
app = typer.Typer(
    name='azsdkgen',
    help='Generate typed Python clients from Azure OpenAPI specifications',
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(message)s',
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def generate(
    operation_ids: Annotated[
        list[str] | None,
        typer.Argument(help='Operation ids to generate, e.g. VirtualNetworks_Get'),
    ] = None,
    specs_dirs: Annotated[
        list[str] | None,
        typer.Option(
            '--specs-dir',
            '-s',
            help='Root directory of the specification corpus; repeat to index several roots',
        ),
    ] = None,
    output_dir: Annotated[
        str | None,
        typer.Option('--output-dir', '-o', help='Directory generated code goes into'),
    ] = None,
    package: Annotated[
        str | None,
        typer.Option('--package', '-p', help='Dotted package name of the generated client'),
    ] = None,
    client_name: Annotated[
        str | None,
        typer.Option('--client-name', help='Name of the generated client class'),
    ] = None,
    config: Annotated[
        str | None,
        typer.Option('--config', '-c', help='Path to configuration file (YAML or JSON)'),
    ] = None,
    all_definitions: Annotated[
        bool,
        typer.Option('--all-definitions', help='Generate every definition, not only reachable ones'),
    ] = False,
    verbose: Annotated[
        bool, typer.Option('--verbose', '-v', help='Show debug logging')
    ] = False,
) -> None:
    """Generate a Python client for the given operations.

    Options override values from the configuration file, which is looked up
    in the current directory when --config is not given.

    Examples:
        azsdkgen generate VirtualNetworks_Get -s specification -o generated
        azsdkgen generate Users_Get Users_List -p contoso.users
        azsdkgen generate -s specification/network -s specification/compute
        azsdkgen generate --config azsdkgen.yaml
    """
    _configure_logging(verbose)

    try:
        settings = get_config(
            config,
            operations=operation_ids or None,
            specs_dirs=specs_dirs or None,
            output_dir=output_dir,
            package=package,
            client_class_name=client_name,
            generate_all_definitions=all_definitions or None,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn('[progress.description]{task.description}'),
            console=console,
        ) as progress:
            task = progress.add_task(
                f'Generating {settings.package} from {", ".join(settings.spec_roots)}...',
                total=None,
            )
            codegen = Codegen(settings)
            result = codegen.generate()
            progress.update(task, description='Code generation completed!')

    except AzSdkGenError as e:
        console.print(f'[red]Error:[/red] {e}')
        raise typer.Exit(1)

    console.print(
        f'[green]Generated {len(result.operations)} operation(s) and '
        f'{len(result.types)} type(s) in {codegen.package_dir}[/green]'
    )
    console.print('[dim]Generated files:[/dim]')
    for path in result.written_files:
        console.print(f'  - {path}')

    for warning in result.warnings:
        console.print(f'[yellow]Warning:[/yellow] {warning}')
    for operation_id in result.skipped_operations:
        console.print(f'[yellow]Skipped non-GET operation:[/yellow] {operation_id}')

    if result.missing_operations:
        for operation_id in result.missing_operations:
            console.print(f'[red]Operation not found:[/red] {operation_id}')
        raise typer.Exit(1)


@app.command()
def operations(
    specs_dirs: Annotated[
        list[str] | None,
        typer.Option(
            '--specs-dir',
            '-s',
            help='Root directory of the specification corpus; repeat to index several roots',
        ),
    ] = None,
    config: Annotated[
        str | None,
        typer.Option('--config', '-c', help='Path to configuration file (YAML or JSON)'),
    ] = None,
) -> None:
    """List every operation found in the specification corpus."""
    try:
        settings = get_config(config, specs_dirs=specs_dirs or None)
        index = SpecIndex.load(
            settings.spec_roots,
            exclude=settings.exclude,
            follow_external_refs=False,
        )
    except AzSdkGenError as e:
        console.print(f'[red]Error:[/red] {e}')
        raise typer.Exit(1)

    table = Table(title=f'Operations in {", ".join(settings.spec_roots)}')
    table.add_column('Operation ID')
    table.add_column('Method')
    table.add_column('Path')
    table.add_column('Source')
    for operation_id, operation in index.operations.items():
        table.add_row(operation_id, operation.http_method, operation.path, operation.source_file)
    console.print(table)


@app.command()
def version() -> None:
    """Show the version of azsdkgen."""
    try:
        console.print(f'azsdkgen version: {package_version("azsdkgen")}')
    except PackageNotFoundError:
        console.print('azsdkgen version: unknown')


if __name__ == '__main__':
    app()
