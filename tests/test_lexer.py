import unittest
from pathlib import Path
import sys
sys.path.append(str(Path(__file__).parent.parent / 'src'))

from varinfer.lexer import Lexer
from varinfer.errors import CompileError

class TestLexer(unittest.TestCase):
    def setUp(self):
        self.lexer = Lexer()

    def types(self, code):
        return [tok.type for tok in self.lexer.tokenize(code)]

    def test_keywords_and_identifiers(self):
        self.assertEqual(
            self.types("struct Foo enum union fn impl trait type mod extern const mut dyn for as"),
            ['STRUCT', 'IDENTIFIER', 'ENUM', 'UNION', 'FN', 'IMPL', 'TRAIT', 'TYPE', 'MOD',
             'EXTERN', 'CONST', 'MUT', 'DYN', 'FOR', 'AS'])

    def test_lifetimes(self):
        tokens = self.lexer.tokenize("&'a mut T 'static '_")
        self.assertEqual([t.type for t in tokens],
                         ['AMPERSAND', 'LIFETIME', 'MUT', 'IDENTIFIER', 'LIFETIME', 'LIFETIME'])
        self.assertEqual(tokens[1].value, "'a")
        self.assertEqual(tokens[4].value, "'static")

    def test_punctuation(self):
        self.assertEqual(
            self.types("<T as Tr>::Item -> *const [u8; 3] # = + - ! :"),
            ['LESS', 'IDENTIFIER', 'AS', 'IDENTIFIER', 'GREATER', 'DOUBLECOLON', 'IDENTIFIER',
             'ARROW', 'STAR', 'CONST', 'LBRACKET', 'IDENTIFIER', 'SEMICOLON', 'NUMBER',
             'RBRACKET', 'HASH', 'EQUALS', 'PLUS', 'MINUS', 'BANG', 'COLON'])

    def test_literals(self):
        tokens = self.lexer.tokenize('42 "phantom_data"')
        self.assertEqual(tokens[0].value, 42)
        self.assertEqual(tokens[1].type, 'STRING')
        self.assertEqual(tokens[1].value, 'phantom_data')

    def test_comments_are_skipped(self):
        self.assertEqual(self.types("// a comment\nstruct // trailing\nFoo"),
                         ['STRUCT', 'IDENTIFIER'])

    def test_line_and_column_tracking(self):
        tokens = self.lexer.tokenize("struct Foo;\n  enum Bar")
        self.assertEqual([(t.lineno, t.column) for t in tokens],
                         [(1, 1), (1, 8), (1, 11), (2, 3), (2, 8)])

    def test_illegal_character(self):
        with self.assertRaises(CompileError) as cm:
            self.lexer.tokenize("struct A;\nstruct B @")
        error = cm.exception
        self.assertEqual(error.error_type, "LexError")
        self.assertIn("'@'", error.message)
        self.assertEqual(error.location.line, 2)
        self.assertEqual(error.location.column, 10)
        self.assertIn("struct B @", error.context)

if __name__ == '__main__':
    unittest.main()
