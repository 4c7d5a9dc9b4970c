from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import argparse
import json
import logging
import sys

from varinfer.errors import CompileError, SourceLocation
from varinfer.items import Program
from varinfer.parser import Parser
from varinfer.resolve import resolve_source_file
from varinfer.variance.dump import VarianceReport, dump_variances
from varinfer.variance.queries import VarianceSession
from varinfer.variance.terms import TermsArena, determine_parameters_to_be_inferred

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(name)s - %(levelname)s - %(message)s'


@dataclass
class CompileOptions:
    """Options for one run of the variance dumper"""
    debug: bool = False
    dump_all: bool = False  # report every item, not only those under #[variance]
    output_format: str = "text"  # "text" or "json"
    dump_terms: bool = False


class VarianceCompiler:
    """Parses, resolves and reports variances for declaration files"""

    def __init__(self, options: Optional[CompileOptions] = None):
        self.options = options or CompileOptions()
        self.parser = Parser()

    def load_str(self, source: str, source_path: str = "<string>") -> Program:
        source_file = self.parser.parse(source, file_path=source_path)
        return resolve_source_file(source_file, source)

    def load_file(self, filepath) -> Program:
        path = Path(filepath)
        try:
            with open(path) as f:
                source = f.read()
        except OSError as e:
            raise CompileError(
                message=f"cannot read {path}: {e.strerror}",
                error_type="IOError",
                location=None,
            )
        return self.load_str(source, str(path))

    def reports_for(self, program: Program) -> List[VarianceReport]:
        session = VarianceSession(program)
        return dump_variances(program, session, dump_all=self.options.dump_all)

    def compile_str(self, source: str, source_path: str = "<string>") -> List[VarianceReport]:
        return self.reports_for(self.load_str(source, source_path))

    def compile_file(self, filepath) -> List[VarianceReport]:
        return self.reports_for(self.load_file(filepath))

    def terms_of(self, program: Program) -> str:
        """Listing of the inference term given to each generic parameter"""
        return determine_parameters_to_be_inferred(program, TermsArena()).dump()

    def render(self, results) -> str:
        """`results` is a list of (file, reports, terms listing or None)"""
        if self.options.output_format == "json":
            return json.dumps([
                {
                    "file": name,
                    "variances": [r.to_json_obj() for r in reports],
                    **({"terms": terms.splitlines()} if terms is not None else {}),
                }
                for name, reports, terms in results
            ], indent=2)

        out = []
        for name, reports, terms in results:
            if len(results) > 1:
                out.append(f"// {name}")
            out.extend(str(r) for r in reports)
            if terms is not None:
                out.append(terms)
        return "\n".join(out)

    def run(self, files: List[str]) -> str:
        results = []
        for file in files:
            program = self.load_file(file)
            reports = self.reports_for(program)
            terms = self.terms_of(program) if self.options.dump_terms else None
            results.append((file, reports, terms))
        return self.render(results)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    parser = argparse.ArgumentParser(description="Variance inference for generic declarations")
    parser.add_argument('files', nargs='+', help='Declaration files to analyse')
    parser.add_argument('--all', action='store_true', dest='dump_all',
                        help='Report every generic item, not only those marked #[variance]')
    parser.add_argument('--json', action='store_true',
                        help='Print the report as JSON')
    parser.add_argument('--terms', action='store_true',
                        help='Also list the inference term of every generic parameter')
    parser.add_argument('--debug', '-g', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format=LOG_FORMAT,
    )

    options = CompileOptions(
        debug=args.debug,
        dump_all=args.dump_all,
        output_format="json" if args.json else "text",
        dump_terms=args.terms,
    )

    compiler = VarianceCompiler(options)
    try:
        print(compiler.run(args.files))
    except CompileError as e:
        print(str(e), file=sys.stderr)
        return 1
    except Exception as e:
        # Unexpected error - report it with the full traceback
        error = CompileError.from_exception(e, location=SourceLocation(args.files[0], 0, 0))
        print(str(error), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
