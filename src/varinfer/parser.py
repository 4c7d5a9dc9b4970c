import ply.yacc as yacc
from varinfer.lexer import Lexer
import varinfer.decl_ast as ast
from varinfer.errors import CompileError
import logging

logger = logging.getLogger(__name__)

VARIANCE_SYMBOLS = ('+', '-', 'o', '*')

class Parser:
    start = 'program'

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.lexer = Lexer()
        self.tokens = self.lexer.tokens  # Get token list from lexer
        self.parser = yacc.yacc(module=self, write_tables=False, debug=False)

    def parse(self, source: str, file_path: str = "<string>") -> ast.SourceFile:
        """Parse declarations into a SourceFile"""
        self.logger.debug("parsing %s", file_path)
        self.lexer.source_file = file_path
        self.lexer.input(source)
        items = self.parser.parse(source, lexer=self.lexer)
        return ast.SourceFile(items=items or [], path=file_path)

    def _loc(self, p, n):
        return self.lexer.location(p.lineno(n), p.lexpos(n))

    # -- items --------------------------------------------------------------

    def p_program(self, p):
        '''program : item_list'''
        p[0] = p[1]

    def p_item_list(self, p):
        '''item_list : item_list item
                     | empty'''
        if len(p) == 3:
            p[0] = p[1] + [p[2]]
        else:
            p[0] = []

    def p_item(self, p):
        '''item : attr_list item_kind'''
        p[0] = p[2]
        p[0].attrs = p[1]

    def p_item_kind(self, p):
        '''item_kind : struct_decl
                     | enum_decl
                     | union_decl
                     | fn_decl
                     | impl_decl
                     | trait_decl
                     | type_decl
                     | mod_decl
                     | extern_decl'''
        p[0] = p[1]

    def p_attr_list(self, p):
        '''attr_list : attr_list attr
                     | empty'''
        if len(p) == 3:
            p[0] = p[1] + [p[2]]
        else:
            p[0] = []

    def p_attr(self, p):
        '''attr : HASH LBRACKET IDENTIFIER RBRACKET
                | HASH LBRACKET IDENTIFIER EQUALS STRING RBRACKET'''
        value = p[5] if len(p) == 7 else None
        p[0] = ast.AttrNode(p[3], value, location=self._loc(p, 1))

    def p_struct_decl(self, p):
        '''struct_decl : STRUCT IDENTIFIER generics LBRACE field_list RBRACE
                       | STRUCT IDENTIFIER generics LPAREN type_list_opt RPAREN SEMICOLON
                       | STRUCT IDENTIFIER generics SEMICOLON'''
        loc = self._loc(p, 1)
        if p[4] == '{':
            p[0] = ast.StructDecl(p[2], p[3], p[5], location=loc)
        elif p[4] == '(':
            fields = [ast.FieldNode(str(i), ty, location=ty.location) for i, ty in enumerate(p[5])]
            p[0] = ast.StructDecl(p[2], p[3], fields, tuple_like=True, location=loc)
        else:
            p[0] = ast.StructDecl(p[2], p[3], [], unit=True, location=loc)

    def p_enum_decl(self, p):
        '''enum_decl : ENUM IDENTIFIER generics LBRACE variant_list RBRACE'''
        p[0] = ast.EnumDecl(p[2], p[3], p[5], location=self._loc(p, 1))

    def p_variant_list(self, p):
        '''variant_list : variant_list_ne
                        | variant_list_ne COMMA
                        | empty'''
        p[0] = p[1] or []

    def p_variant_list_ne(self, p):
        '''variant_list_ne : variant
                           | variant_list_ne COMMA variant'''
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_variant(self, p):
        '''variant : attr_list IDENTIFIER
                   | attr_list IDENTIFIER LPAREN type_list_opt RPAREN
                   | attr_list IDENTIFIER LBRACE field_list RBRACE'''
        loc = self._loc(p, 2)
        if len(p) == 3:
            p[0] = ast.VariantNode(p[2], [], unit=True, location=loc)
        elif p[3] == '(':
            fields = [ast.FieldNode(str(i), ty, location=ty.location) for i, ty in enumerate(p[4])]
            p[0] = ast.VariantNode(p[2], fields, tuple_like=True, location=loc)
        else:
            p[0] = ast.VariantNode(p[2], p[4], location=loc)
        p[0].attrs = p[1]

    def p_union_decl(self, p):
        '''union_decl : UNION IDENTIFIER generics LBRACE field_list RBRACE'''
        p[0] = ast.UnionDecl(p[2], p[3], p[5], location=self._loc(p, 1))

    def p_fn_decl(self, p):
        '''fn_decl : FN IDENTIFIER generics LPAREN field_list RPAREN ret_type SEMICOLON'''
        p[0] = ast.FnDecl(p[2], p[3], p[5], p[7], location=self._loc(p, 1))

    def p_ret_type(self, p):
        '''ret_type : ARROW type
                    | ARROW IMPL bound_list
                    | empty'''
        if len(p) == 3:
            p[0] = p[2]
        elif len(p) == 4:
            p[0] = ast.ImplType(p[3], location=self._loc(p, 2))
        else:
            p[0] = None

    def p_impl_decl(self, p):
        '''impl_decl : IMPL generics path_type LBRACE member_list RBRACE
                     | IMPL generics path_type FOR path_type LBRACE member_list RBRACE'''
        loc = self._loc(p, 1)
        if len(p) == 7:
            p[0] = ast.ImplDecl(p[2], p[3], None, p[5], location=loc)
        else:
            p[0] = ast.ImplDecl(p[2], p[5], p[3], p[7], location=loc)

    def p_member_list(self, p):
        '''member_list : member_list member
                       | empty'''
        if len(p) == 3:
            p[0] = p[1] + [p[2]]
        else:
            p[0] = []

    def p_member(self, p):
        '''member : attr_list fn_decl'''
        p[0] = p[2]
        p[0].attrs = p[1]

    def p_trait_decl(self, p):
        '''trait_decl : TRAIT IDENTIFIER generics LBRACE trait_member_list RBRACE
                      | TRAIT IDENTIFIER generics SEMICOLON'''
        members = p[5] if len(p) == 7 else []
        assoc_types = [m for m in members if isinstance(m, str)]
        fns = [m for m in members if not isinstance(m, str)]
        p[0] = ast.TraitDecl(p[2], p[3], assoc_types, fns, location=self._loc(p, 1))

    def p_trait_member_list(self, p):
        '''trait_member_list : trait_member_list trait_member
                             | empty'''
        if len(p) == 3:
            p[0] = p[1] + [p[2]]
        else:
            p[0] = []

    def p_trait_member(self, p):
        '''trait_member : member
                        | assoc_type'''
        p[0] = p[1]

    def p_assoc_type(self, p):
        '''assoc_type : TYPE IDENTIFIER SEMICOLON'''
        p[0] = p[2]

    def p_type_decl(self, p):
        '''type_decl : TYPE IDENTIFIER generics EQUALS type SEMICOLON
                     | TYPE IDENTIFIER generics EQUALS IMPL bound_list SEMICOLON'''
        if len(p) == 8:
            ty = ast.ImplType(p[6], location=self._loc(p, 5))
        else:
            ty = p[5]
        p[0] = ast.TypeAliasDecl(p[2], p[3], ty, location=self._loc(p, 1))

    def p_mod_decl(self, p):
        '''mod_decl : MOD IDENTIFIER LBRACE item_list RBRACE'''
        p[0] = ast.ModDecl(p[2], p[4], location=self._loc(p, 1))

    def p_extern_decl(self, p):
        '''extern_decl : EXTERN extern_adt IDENTIFIER generics EQUALS LBRACKET variance_list RBRACKET SEMICOLON'''
        p[0] = ast.ExternDecl(p[2], p[3], p[4], variances=p[7], location=self._loc(p, 1))

    def p_extern_trait(self, p):
        '''extern_decl : EXTERN TRAIT IDENTIFIER generics SEMICOLON
                       | EXTERN TRAIT IDENTIFIER generics LBRACE assoc_type_list RBRACE'''
        assoc_types = p[6] if len(p) == 8 else []
        p[0] = ast.ExternDecl('trait', p[3], p[4], assoc_types=assoc_types, location=self._loc(p, 1))

    def p_extern_adt(self, p):
        '''extern_adt : STRUCT
                      | ENUM
                      | UNION'''
        p[0] = p[1]

    def p_assoc_type_list(self, p):
        '''assoc_type_list : assoc_type_list assoc_type
                           | empty'''
        if len(p) == 3:
            p[0] = p[1] + [p[2]]
        else:
            p[0] = []

    def p_variance_list(self, p):
        '''variance_list : variance_list_ne
                         | empty'''
        p[0] = p[1] or []

    def p_variance_list_ne(self, p):
        '''variance_list_ne : variance_symbol
                            | variance_list_ne COMMA variance_symbol'''
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_variance_symbol(self, p):
        '''variance_symbol : PLUS
                           | MINUS
                           | STAR
                           | IDENTIFIER'''
        if p[1] not in VARIANCE_SYMBOLS:
            raise CompileError(
                message=f"expected one of {', '.join(VARIANCE_SYMBOLS)}, found `{p[1]}`",
                error_type="ParseError",
                location=self._loc(p, 1),
                context=self.lexer.context(p.lineno(1)),
            )
        p[0] = p[1]

    # -- generics -------------------------------------------------------------

    def p_generics(self, p):
        '''generics : LESS generic_param_list GREATER
                    | empty'''
        p[0] = p[2] if len(p) == 4 else []

    def p_generic_param_list(self, p):
        '''generic_param_list : generic_param
                              | generic_param_list COMMA generic_param'''
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_generic_param(self, p):
        '''generic_param : LIFETIME
                         | IDENTIFIER
                         | CONST IDENTIFIER COLON type'''
        loc = self._loc(p, 1)
        if len(p) == 5:
            p[0] = ast.GenericParamNode(p[2], 'const', p[4], location=loc)
        elif p.slice[1].type == 'LIFETIME':
            p[0] = ast.GenericParamNode(p[1], 'lifetime', location=loc)
        else:
            p[0] = ast.GenericParamNode(p[1], 'type', location=loc)

    def p_field_list(self, p):
        '''field_list : field_list_ne
                      | field_list_ne COMMA
                      | empty'''
        p[0] = p[1] or []

    def p_field_list_ne(self, p):
        '''field_list_ne : field
                         | field_list_ne COMMA field'''
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_field(self, p):
        '''field : IDENTIFIER COLON type'''
        p[0] = ast.FieldNode(p[1], p[3], location=self._loc(p, 1))

    # -- types ----------------------------------------------------------------

    def p_type_list_opt(self, p):
        '''type_list_opt : type_list
                         | type_list COMMA
                         | empty'''
        p[0] = p[1] or []

    def p_type_list(self, p):
        '''type_list : type
                     | type_list COMMA type'''
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_type_path(self, p):
        '''type : path_type
                | fn_type'''
        p[0] = p[1]

    def p_type_ref(self, p):
        '''type : AMPERSAND type
                | AMPERSAND LIFETIME type
                | AMPERSAND MUT type
                | AMPERSAND LIFETIME MUT type'''
        loc = self._loc(p, 1)
        if len(p) == 3:
            p[0] = ast.RefType(None, p[2], location=loc)
        elif len(p) == 5:
            p[0] = ast.RefType(ast.LifetimeNode(p[2], location=self._loc(p, 2)), p[4], True, location=loc)
        elif p.slice[2].type == 'MUT':
            p[0] = ast.RefType(None, p[3], True, location=loc)
        else:
            p[0] = ast.RefType(ast.LifetimeNode(p[2], location=self._loc(p, 2)), p[3], location=loc)

    def p_type_ptr(self, p):
        '''type : STAR CONST type
                | STAR MUT type'''
        p[0] = ast.PtrType(p[3], p.slice[2].type == 'MUT', location=self._loc(p, 1))

    def p_type_slice(self, p):
        '''type : LBRACKET type RBRACKET
                | LBRACKET type SEMICOLON const_arg RBRACKET'''
        loc = self._loc(p, 1)
        if len(p) == 4:
            p[0] = ast.SliceType(p[2], location=loc)
        else:
            p[0] = ast.ArrayType(p[2], p[4], location=loc)

    def p_type_tuple(self, p):
        '''type : LPAREN RPAREN
                | LPAREN type RPAREN
                | LPAREN type COMMA type_list_opt RPAREN'''
        loc = self._loc(p, 1)
        if len(p) == 3:
            p[0] = ast.TupleType([], location=loc)
        elif len(p) == 4:
            p[0] = p[2]
        else:
            p[0] = ast.TupleType([p[2]] + p[4], location=loc)

    def p_type_hrtb(self, p):
        '''type : FOR LESS lifetime_list GREATER fn_type'''
        p[0] = p[5]
        p[0].bound_lifetimes = p[3]

    def p_type_dyn(self, p):
        '''type : DYN bound_list'''
        p[0] = ast.DynType(p[2], location=self._loc(p, 1))

    def p_type_qualified(self, p):
        '''type : LESS type AS path_type GREATER DOUBLECOLON IDENTIFIER'''
        p[0] = ast.QualifiedPath(p[2], p[4], p[7], location=self._loc(p, 1))

    def p_type_never(self, p):
        '''type : BANG'''
        p[0] = ast.NeverType(location=self._loc(p, 1))

    def p_fn_type(self, p):
        '''fn_type : FN LPAREN type_list_opt RPAREN
                   | FN LPAREN type_list_opt RPAREN ARROW type'''
        output = p[6] if len(p) == 7 else None
        p[0] = ast.FnType(p[3], output, location=self._loc(p, 1))

    def p_path_type(self, p):
        '''path_type : IDENTIFIER
                     | IDENTIFIER LESS generic_arg_list GREATER'''
        args = p[3] if len(p) == 5 else []
        p[0] = ast.PathType(p[1], args, location=self._loc(p, 1))

    def p_generic_arg_list(self, p):
        '''generic_arg_list : generic_arg
                            | generic_arg_list COMMA generic_arg'''
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_generic_arg(self, p):
        '''generic_arg : type
                       | const_block'''
        p[0] = p[1]

    def p_generic_arg_lifetime(self, p):
        '''generic_arg : LIFETIME'''
        p[0] = ast.LifetimeNode(p[1], location=self._loc(p, 1))

    def p_generic_arg_number(self, p):
        '''generic_arg : NUMBER'''
        p[0] = ast.ConstLiteral(p[1], location=self._loc(p, 1))

    def p_generic_arg_binding(self, p):
        '''generic_arg : IDENTIFIER EQUALS type'''
        p[0] = ast.AssocBinding(p[1], p[3], location=self._loc(p, 1))

    def p_const_arg(self, p):
        '''const_arg : NUMBER
                     | IDENTIFIER
                     | const_block'''
        if p.slice[1].type == 'NUMBER':
            p[0] = ast.ConstLiteral(p[1], location=self._loc(p, 1))
        elif p.slice[1].type == 'IDENTIFIER':
            p[0] = ast.PathType(p[1], location=self._loc(p, 1))
        else:
            p[0] = p[1]

    def p_const_block(self, p):
        '''const_block : LBRACE IDENTIFIER RBRACE
                       | LBRACE IDENTIFIER DOUBLECOLON LESS generic_arg_list GREATER RBRACE'''
        args = p[5] if len(p) == 8 else []
        p[0] = ast.ConstBlock(p[2], args, location=self._loc(p, 1))

    def p_bound_list(self, p):
        '''bound_list : bound
                      | bound_list PLUS bound'''
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_bound(self, p):
        '''bound : path_type'''
        p[0] = p[1]

    def p_bound_lifetime(self, p):
        '''bound : LIFETIME'''
        p[0] = ast.LifetimeNode(p[1], location=self._loc(p, 1))

    def p_lifetime_list(self, p):
        '''lifetime_list : LIFETIME
                         | lifetime_list COMMA LIFETIME'''
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_empty(self, p):
        '''empty :'''
        p[0] = None

    def p_error(self, p):
        if p is None:
            raise CompileError(
                message="Unexpected end of input",
                error_type="ParseError",
                location=None,
            )
        location = self.lexer.location(p.lineno, p.lexpos)
        raise CompileError(
            message=f"Unexpected token {p.type} ('{p.value}')",
            error_type="ParseError",
            location=location,
            context=self.lexer.context(p.lineno),
        )
