import ply.lex as lex
from varinfer.errors import CompileError, SourceLocation, format_context
import logging

logger = logging.getLogger(__name__)

class Lexer:
    # A string containing ignored characters (spaces and tabs)
    t_ignore = ' \t\r'

    # Keywords
    reserved = {
        'struct': 'STRUCT',
        'enum': 'ENUM',
        'union': 'UNION',
        'fn': 'FN',
        'impl': 'IMPL',
        'trait': 'TRAIT',
        'type': 'TYPE',
        'mod': 'MOD',
        'extern': 'EXTERN',
        'const': 'CONST',
        'mut': 'MUT',
        'dyn': 'DYN',
        'for': 'FOR',
        'as': 'AS',
    }

    # List of token names
    tokens = [
        'IDENTIFIER', 'LIFETIME', 'NUMBER', 'STRING',
        'LPAREN', 'RPAREN', 'LBRACE', 'RBRACE', 'LBRACKET', 'RBRACKET',
        'LESS', 'GREATER', 'COMMA', 'SEMICOLON', 'COLON', 'DOUBLECOLON',
        'ARROW', 'AMPERSAND', 'STAR', 'BANG', 'HASH', 'EQUALS', 'PLUS', 'MINUS',
    ] + list(reserved.values())

    # Regular expression rules for simple tokens
    t_LPAREN = r'\('
    t_RPAREN = r'\)'
    t_LBRACE = r'\{'
    t_RBRACE = r'\}'
    t_LBRACKET = r'\['
    t_RBRACKET = r'\]'
    t_LESS = r'<'
    t_GREATER = r'>'
    t_COMMA = r','
    t_SEMICOLON = r';'
    t_COLON = r':'
    t_DOUBLECOLON = r'::'
    t_ARROW = r'->'
    t_AMPERSAND = r'&'
    t_STAR = r'\*'
    t_BANG = r'!'
    t_HASH = r'\#'
    t_EQUALS = r'='
    t_PLUS = r'\+'
    t_MINUS = r'-'

    # Comments
    t_ignore_COMMENT = r'//[^\n]*'

    # Regular expression rules with actions
    def t_LIFETIME(self, t):
        r"'[a-zA-Z_][a-zA-Z_0-9]*"
        return t

    def t_IDENTIFIER(self, t):
        r'[a-zA-Z_][a-zA-Z_0-9]*'
        # Check for reserved words
        t.type = self.reserved.get(t.value, 'IDENTIFIER')
        return t

    def t_NUMBER(self, t):
        r'\d+'
        t.value = int(t.value)
        return t

    def t_STRING(self, t):
        r'"[^"\n]*"'
        t.value = t.value[1:-1]
        return t

    # Define a rule so we can track line numbers
    def t_newline(self, t):
        r'\n+'
        # Track the position after each newline
        for i in range(len(t.value)):
            self.line_starts.append(t.lexpos + i + 1)
        t.lexer.lineno += len(t.value)

    # Error handling rule
    def t_error(self, t):
        location = self.location(t.lineno, t.lexpos)
        raise CompileError(
            message=f"Illegal character '{t.value[0]}'",
            error_type="LexError",
            location=location,
            context=self.context(t.lineno),
        )

    # Build the lexer
    def __init__(self, source_file: str = "<string>"):
        self.lexer = lex.lex(module=self)
        self.source_file = source_file
        self.source = ""
        self.line_starts = [0]  # Track start of each line

    def input(self, data):
        self.source = data
        self.lexer.lineno = 1
        self.line_starts = [0]  # Reset line starts
        self.lexer.input(data)

    def token(self):
        tok = self.lexer.token()
        if tok:
            tok.column = self.column(tok.lineno, tok.lexpos)
            logger.debug("Token recognized: %s, value: %s", tok.type, tok.value)
        return tok

    def column(self, lineno, lexpos):
        # Columns are 1-based
        line_start = self.line_starts[min(lineno - 1, len(self.line_starts) - 1)]
        return lexpos - line_start + 1

    def location(self, lineno, lexpos):
        return SourceLocation(self.source_file, lineno, self.column(lineno, lexpos))

    def context(self, lineno):
        return format_context(self.source.splitlines(), lineno)

    def tokenize(self, data):
        """All tokens of `data`, for tests and debugging"""
        self.input(data)
        out = []
        while True:
            tok = self.token()
            if tok is None:
                return out
            out.append(tok)
