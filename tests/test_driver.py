import io
import json
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
import sys
sys.path.append(str(Path(__file__).parent.parent / 'src'))

from varinfer.driver import CompileOptions, VarianceCompiler, main
from varinfer.errors import CompileError

FIXTURES = Path(__file__).parent / 'fixtures'
BASIC = str(FIXTURES / 'basic.rs')
UNKNOWN_TYPE = str(FIXTURES / 'errors' / 'unknown_type.rs')

class TestVarianceCompiler(unittest.TestCase):
    def test_compile_str_reports_marked_items(self):
        compiler = VarianceCompiler()
        reports = compiler.compile_str("#[variance]\nstruct S<'a, T> { r: &'a mut T }\nstruct U<T> { t: T }")
        self.assertEqual([str(r) for r in reports], ["S: [-, o]"])

    def test_compile_file(self):
        reports = VarianceCompiler().compile_file(BASIC)
        self.assertEqual([str(r) for r in reports], ["Pair: [+, -]", "consume: [-]"])
        self.assertTrue(str(reports[0].location).endswith("basic.rs:5:1"))

    def test_dump_all(self):
        compiler = VarianceCompiler(CompileOptions(dump_all=True))
        reports = compiler.compile_file(BASIC)
        self.assertEqual([str(r) for r in reports],
                         ["Vec: [+]", "Pair: [+, -]", "consume: [-]", "Unmarked: [o]"])

    def test_missing_file(self):
        with self.assertRaises(CompileError) as cm:
            VarianceCompiler().load_file(FIXTURES / 'does_not_exist.rs')
        self.assertEqual(cm.exception.error_type, "IOError")

    def test_terms_listing(self):
        compiler = VarianceCompiler()
        program = compiler.load_str("fn apply<'a, T>(x: &'a T) -> T;")
        self.assertEqual(compiler.terms_of(program).splitlines(),
                         ["apply:", "  (0) lifetime 'a -> [0]", "  (1) type T -> [1]"])

class TestMain(unittest.TestCase):
    def run_main(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_text_output(self):
        code, out, _ = self.run_main([BASIC])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "Pair: [+, -]\nconsume: [-]")

    def test_json_output(self):
        code, out, _ = self.run_main(['--json', BASIC])
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['file'], BASIC)
        pair = data[0]['variances'][0]
        self.assertEqual(pair['item'], 'Pair')
        self.assertEqual(pair['kind'], 'struct')
        self.assertEqual(pair['variances'], ['+', '-'])
        self.assertNotIn('terms', data[0])

    def test_several_files_get_headers(self):
        code, out, _ = self.run_main([BASIC, BASIC])
        self.assertEqual(code, 0)
        self.assertEqual(out.count(f"// {BASIC}"), 2)

    def test_resolve_error(self):
        code, out, err = self.run_main([UNKNOWN_TYPE])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("ResolveError", err)
        self.assertIn("cannot find type `Missing`", err)
        self.assertIn("x: Missing<T>", err)

    def test_missing_file(self):
        code, _, err = self.run_main([str(FIXTURES / 'does_not_exist.rs')])
        self.assertEqual(code, 1)
        self.assertIn("IOError", err)

if __name__ == '__main__':
    unittest.main()
