import itertools
import logging
import sys
from pathlib import Path
from typing import Optional, Union

import click
from pydantic import BaseModel

from jack.ast import Class
from jack.errors import JackError, SourceReadError
from jack.lexer import tokenize
from jack.parser import Parser
from jack.symbols import SymbolTable

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".jack"


class CompilationUnit(BaseModel):
    source_name: str
    klass: Optional[Class]
    symbols: SymbolTable


def analyze(source: str, source_name: str = "<input>") -> CompilationUnit:
    """Tokenize and parse one unit; raises a ``JackError`` on the first problem."""
    parser = Parser.from_source(source, source_name)
    klass = parser.parse()
    return CompilationUnit(source_name=source_name, klass=klass, symbols=parser.symbols)


def read_source(path: Union[str, Path]) -> str:
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(str(path), str(e)) from e


def analyze_file(path: Union[str, Path]) -> CompilationUnit:
    return analyze(read_source(path), str(Path(path)))


def find_sources(path: Union[str, Path]) -> list[Path]:
    path = Path(path)
    if not path.is_dir():
        return [path]
    sources = sorted(
        p for p in path.iterdir() if p.is_file() and p.suffix == SOURCE_SUFFIX
    )
    if not sources:
        logger.warning("no %s files in %s", SOURCE_SUFFIX, path)
    return sources


class Main(BaseModel):
    paths: list[str]
    dump_ast: bool
    tokens: bool
    verbose: bool

    def _analyze(self, path: Path) -> None:
        tokens = tokenize(read_source(path), str(path))
        if self.tokens:
            for token in tokens:
                click.echo(token.model_dump_json())
        klass = Parser(tokens, str(path)).parse()
        if self.dump_ast and klass is not None:
            click.echo(klass.model_dump_json(indent=2))

    def run(self) -> int:
        logging.basicConfig(
            level=logging.DEBUG if self.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )
        failed = 0
        sources = list(itertools.chain.from_iterable(map(find_sources, self.paths)))
        for path in sources:
            try:
                self._analyze(path)
            except JackError as e:
                failed += 1
                logger.debug("%s: analysis aborted", path, exc_info=True)
                click.echo(str(e), err=True)
        logger.info("analyzed %d units, %d failed", len(sources), failed)
        return 1 if failed else 0


@click.command()
@click.help_option("-h", "--help")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--dump-ast", is_flag=True, help="Print each unit's AST as JSON")
@click.option("--tokens", is_flag=True, help="Print each unit's tokens as JSON lines")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(paths: tuple[str, ...], dump_ast: bool, tokens: bool, verbose: bool) -> None:
    sys.exit(
        Main(paths=list(paths), dump_ast=dump_ast, tokens=tokens, verbose=verbose).run()
    )
