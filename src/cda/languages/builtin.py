"""Built-in language definitions."""

from __future__ import annotations

from cda.languages.base import Language, LexicalRules

_C_FAMILY_RULES = LexicalRules()

SWIFT = Language(
    name="swift",
    extensions=(".swift",),
    rules=LexicalRules(
        string_delimiters=('"""', '"'),
        multiline_delimiters=('"""',),
        nested_block_comments=True,
    ),
    keywords=frozenset(
        {
            "associatedtype", "as", "break", "case", "catch", "class", "continue",
            "default", "defer", "deinit", "do", "else", "enum", "extension",
            "fallthrough", "false", "fileprivate", "for", "func", "guard", "if",
            "import", "in", "init", "inout", "internal", "is", "let", "nil",
            "open", "operator", "private", "protocol", "public", "repeat",
            "rethrows", "return", "self", "Self", "static", "struct", "subscript",
            "super", "switch", "throw", "throws", "true", "try", "typealias",
            "var", "where", "while", "async", "await", "override", "mutating",
            "weak", "lazy", "final", "convenience", "required",
        }
    ),
)

JAVA = Language(
    name="java",
    extensions=(".java",),
    rules=LexicalRules(
        string_delimiters=('"""', '"', "'"),
        multiline_delimiters=('"""',),
    ),
    keywords=frozenset(
        {
            "abstract", "assert", "boolean", "break", "byte", "case", "catch",
            "char", "class", "const", "continue", "default", "do", "double",
            "else", "enum", "extends", "final", "finally", "float", "for",
            "goto", "if", "implements", "import", "instanceof", "int",
            "interface", "long", "native", "new", "package", "private",
            "protected", "public", "return", "short", "static", "strictfp",
            "super", "switch", "synchronized", "this", "throw", "throws",
            "transient", "try", "void", "volatile", "while", "true", "false",
            "null", "var", "record", "yield",
        }
    ),
)

KOTLIN = Language(
    name="kotlin",
    extensions=(".kt", ".kts"),
    rules=LexicalRules(
        string_delimiters=('"""', '"', "'"),
        multiline_delimiters=('"""',),
        nested_block_comments=True,
    ),
    keywords=frozenset(
        {
            "as", "break", "class", "continue", "do", "else", "false", "for",
            "fun", "if", "in", "interface", "is", "null", "object", "package",
            "return", "super", "this", "throw", "true", "try", "typealias",
            "val", "var", "when", "while", "by", "catch", "constructor",
            "finally", "get", "import", "init", "set", "where", "companion",
            "data", "enum", "open", "override", "private", "protected",
            "public", "internal", "sealed", "suspend", "lateinit", "inline",
        }
    ),
)

RUST = Language(
    name="rust",
    extensions=(".rs",),
    rules=LexicalRules(
        string_delimiters=('"',),
        multiline_delimiters=('"',),
        nested_block_comments=True,
    ),
    keywords=frozenset(
        {
            "as", "async", "await", "break", "const", "continue", "crate",
            "dyn", "else", "enum", "extern", "false", "fn", "for", "if", "impl",
            "in", "let", "loop", "match", "mod", "move", "mut", "pub", "ref",
            "return", "self", "Self", "static", "struct", "super", "trait",
            "true", "type", "unsafe", "use", "where", "while",
        }
    ),
)

HTML = Language(
    name="html",
    extensions=(".html", ".htm"),
    rules=LexicalRules(
        line_comment_prefixes=(),
        block_comment_pairs=(("<!--", "-->"),),
        string_delimiters=('"',),
        multiline_delimiters=(),
    ),
    keywords=frozenset(
        {
            "html", "head", "body", "div", "span", "p", "a", "ul", "ol", "li",
            "table", "tr", "td", "th", "thead", "tbody", "form", "input",
            "button", "select", "option", "label", "img", "script", "style",
            "link", "meta", "title", "h1", "h2", "h3", "h4", "h5", "h6", "br",
            "section", "header", "footer", "nav", "main", "article", "class",
            "id", "href", "src", "type", "name", "value",
        }
    ),
)

PYTHON = Language(
    name="python",
    extensions=(".py", ".pyi"),
    rules=LexicalRules(
        line_comment_prefixes=("#",),
        block_comment_pairs=(),
        string_delimiters=('"""', "'''", '"', "'"),
        multiline_delimiters=('"""', "'''"),
    ),
    keywords=frozenset(
        {
            "False", "None", "True", "and", "as", "assert", "async", "await",
            "break", "class", "continue", "def", "del", "elif", "else",
            "except", "finally", "for", "from", "global", "if", "import", "in",
            "is", "lambda", "nonlocal", "not", "or", "pass", "raise", "return",
            "try", "while", "with", "yield", "self",
        }
    ),
)

GO = Language(
    name="go",
    extensions=(".go",),
    rules=LexicalRules(
        string_delimiters=("`", '"', "'"),
        multiline_delimiters=("`",),
    ),
    keywords=frozenset(
        {
            "break", "case", "chan", "const", "continue", "default", "defer",
            "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
            "interface", "map", "package", "range", "return", "select",
            "struct", "switch", "type", "var", "nil", "true", "false",
        }
    ),
)

C_CPP = Language(
    name="cpp",
    extensions=(".c", ".h", ".cc", ".cpp", ".cxx", ".hpp", ".hh", ".hxx"),
    rules=LexicalRules(
        string_delimiters=('"', "'"),
        multiline_delimiters=(),
    ),
    keywords=frozenset(
        {
            "auto", "break", "case", "char", "const", "continue", "default",
            "do", "double", "else", "enum", "extern", "float", "for", "goto",
            "if", "inline", "int", "long", "register", "return", "short",
            "signed", "sizeof", "static", "struct", "switch", "typedef",
            "union", "unsigned", "void", "volatile", "while", "bool", "class",
            "delete", "false", "friend", "namespace", "new", "nullptr",
            "operator", "private", "protected", "public", "template", "this",
            "throw", "true", "try", "catch", "typename", "using", "virtual",
            "constexpr", "override", "final", "static_cast", "include",
            "define", "ifdef", "ifndef", "endif", "pragma",
        }
    ),
)

CSHARP = Language(
    name="csharp",
    extensions=(".cs",),
    rules=LexicalRules(
        string_delimiters=('"""', '"', "'"),
        multiline_delimiters=('"""',),
    ),
    keywords=frozenset(
        {
            "abstract", "as", "base", "bool", "break", "case", "catch", "class",
            "const", "continue", "decimal", "default", "delegate", "do",
            "double", "else", "enum", "event", "false", "finally", "float",
            "for", "foreach", "get", "if", "in", "int", "interface", "internal",
            "is", "long", "namespace", "new", "null", "object", "out",
            "override", "private", "protected", "public", "readonly", "ref",
            "return", "sealed", "set", "static", "string", "struct", "switch",
            "this", "throw", "true", "try", "using", "var", "virtual", "void",
            "while", "async", "await", "record",
        }
    ),
)

JAVASCRIPT = Language(
    name="javascript",
    extensions=(".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx"),
    rules=LexicalRules(
        string_delimiters=("`", '"', "'"),
        multiline_delimiters=("`",),
    ),
    keywords=frozenset(
        {
            "async", "await", "break", "case", "catch", "class", "const",
            "continue", "debugger", "default", "delete", "do", "else", "export",
            "extends", "false", "finally", "for", "function", "if", "import",
            "in", "instanceof", "let", "new", "null", "return", "super",
            "switch", "this", "throw", "true", "try", "typeof", "undefined",
            "var", "void", "while", "yield", "interface", "type", "enum",
            "implements", "private", "protected", "public", "readonly", "from",
        }
    ),
)

GENERIC = Language(
    name="generic",
    extensions=(),
    rules=_C_FAMILY_RULES,
    keywords=frozenset(),
)

BUILTIN_LANGUAGES: tuple[Language, ...] = (
    SWIFT,
    JAVA,
    KOTLIN,
    RUST,
    HTML,
    PYTHON,
    GO,
    C_CPP,
    CSHARP,
    JAVASCRIPT,
)
