"""CLI entrypoint: Typer app definition and command registration"""

from typing import Annotated

import typer

from synblog.cli.commands import (
    build_cmd, fmt_cmd, index_cmd, init_cmd, list_cmd, new_cmd, render_cmd, show_cmd,
)


app = typer.Typer(name="synblog", no_args_is_help=True, help="SynBlog post parsing, rendering and publishing")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    ):
    ctx.obj = {"verbose": verbose}


app.command(name="init")(init_cmd)
app.command(name="new")(new_cmd)
app.command(name="show")(show_cmd)
app.command(name="render")(render_cmd)
app.command(name="fmt")(fmt_cmd)
app.command(name="build")(build_cmd)
app.command(name="index")(index_cmd)
app.command(name="list")(list_cmd)
