"""
gprasm - GPR Assembler Command-Line Interface
=============================================

This module implements the command-line interface for the GPR assembler.

Usage Examples
--------------
Basic assembly (writes out.bin):
    $ gprasm program.s

With output and symbol files:
    $ gprasm program.s -o program.bin -s program.sym

Restrict the instruction set:
    $ gprasm -w arithmetic.json program.s

Read source from stdin and write the image to stdout:
    $ cat program.s | gprasm - --stdout > program.bin
"""

import logging
from pathlib import Path
from typing import Optional

import click

from gprasm import __version__
from gprasm.assembler import Assembler
from gprasm.assembler.whitelist import load_whitelist
from gprasm.cli.errors import handle_cli_exception
from gprasm.config import AssemblerConfig


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(allow_dash=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("out.bin"),
    show_default=True,
    help="Output binary image",
)
@click.option(
    "--stdout",
    "to_stdout",
    is_flag=True,
    help="Write the binary image to standard output instead of a file",
)
@click.option(
    "-s", "--symfile",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--symbol-format",
    type=click.Choice(["json", "text"]),
    default=None,
    help="Symbol file format (default: json, or $GPRASM_SYMBOL_FORMAT)",
)
@click.option(
    "-w", "--whitelist",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON array of allowed mnemonics",
)
@click.option(
    "-I", "--include",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Add include search path (can be repeated)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="gprasm")
def main(
    input_file: Path,
    output: Path,
    to_stdout: bool,
    symfile: Optional[Path],
    symbol_format: Optional[str],
    whitelist: Optional[Path],
    include: tuple[Path, ...],
    listing: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble GPR machine source code into a flat binary image.

    INPUT_FILE is the assembly source file, or - to read standard input.

    \b
    Examples:
        gprasm program.s                   # Outputs out.bin
        gprasm program.s -o program.bin    # Specify output file
        gprasm -I lib/ program.s           # Add include path
        gprasm -w allowed.json program.s   # Restrict mnemonics
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        try:
            config = AssemblerConfig.from_env()
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="environment")

        # Command-line options take precedence over the environment
        config.include_paths = list(include) + config.include_paths
        if whitelist is not None:
            config.whitelist = load_whitelist(whitelist)
        if symbol_format is not None:
            config.symbol_format = symbol_format

        if verbose:
            click.echo(f"Include paths: {', '.join(map(str, config.include_paths)) or '(none)'}", err=True)
            if config.whitelist is not None:
                click.echo(f"Whitelist: {', '.join(sorted(config.whitelist))}", err=True)

        asm = Assembler(config)

        if str(input_file) == "-":
            if verbose:
                click.echo("Assembling <stdin>...", err=True)
            source = click.get_text_stream("stdin").read()
            asm.assemble_string(source, "<stdin>")
        else:
            if verbose:
                click.echo(f"Assembling {input_file}...", err=True)
            asm.assemble_file(input_file)

        code = asm.get_code()

        # Write primary output
        if to_stdout:
            stream = click.get_binary_stream("stdout")
            stream.write(code)
            stream.flush()
        else:
            asm.write_binary(output)
            if verbose:
                click.echo(f"Wrote {len(code)} bytes to {output}", err=True)

        # Write optional auxiliary files
        if symfile:
            asm.write_symbols(symfile)
            if verbose:
                click.echo(f"Wrote symbols to {symfile}", err=True)

        if listing:
            asm.write_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}", err=True)

        if verbose:
            click.echo(f"Assembly complete: {len(code)} bytes", err=True)
            click.echo(f"Defined {len(asm.get_symbols())} symbols", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
