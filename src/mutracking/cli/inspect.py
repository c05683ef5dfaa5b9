from __future__ import annotations

import typer
from typing import Optional

from mutracking.io.ntuple_store import DataKeyType, NTupleStore
from mutracking.io.settings import SimSetting, format_setting, load_settings

app = typer.Typer(help="Inspect exported hit ntuples and run settings")


@app.command("tables")
def tables(
    h5_path: str = typer.Argument(..., help="Path to HDF5 file written by the pipeline"),
):
    """List declared tables with their row and key counts."""
    with NTupleStore(h5_path, mode="r") as store:
        for name in store.tables():
            schema = store.schema(name)
            typer.echo(f"{name}: {store.n_rows(name)} rows, "
                       f"{len(schema.single_keys)} single / {len(schema.vector_keys)} vector keys")


@app.command("settings")
def show_settings(
    path: str = typer.Argument(..., help="HDF5 output or plain-text .settings file"),
):
    """Print run settings as 'name: text' lines."""
    if path.endswith((".h5", ".hdf5")):
        with NTupleStore(path, mode="r") as store:
            entries = [SimSetting(k, v) for k, v in store.read_settings().items()]
    else:
        entries = load_settings(path)
    for entry in entries:
        typer.echo(format_setting(entry))


@app.command("rows")
def rows(
    h5_path: str = typer.Argument(..., help="Path to HDF5 file written by the pipeline"),
    table: str = typer.Option("box_run", "--table", "-t", help="Table name"),
    start: int = typer.Option(0, "--start", help="First row to print"),
    count: int = typer.Option(5, "--count", "-n", help="Number of rows to print"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Only print this key"),
):
    """Print rows of a table, one key per line."""
    with NTupleStore(h5_path, mode="r") as store:
        schema = store.schema(table)
        data = store.read_table(table)
        n = store.n_rows(table)
    keys = [key] if key else list(schema.keys)
    for k in keys:
        if k not in data:
            raise typer.BadParameter(f"unknown key '{k}' for table '{table}'")
    for i in range(start, min(start + count, n)):
        typer.echo(f"--- row {i} ---")
        for k in keys:
            value = data[k][i]
            if schema.types[schema.keys.index(k)] is DataKeyType.VECTOR:
                value = list(value)
            typer.echo(f"  {k}: {value}")


if __name__ == "__main__":
    app()
