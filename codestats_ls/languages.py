"""File extension to Code::Stats language lookup."""
from __future__ import annotations

from urllib.parse import unquote, urlparse

# === Extensions grouped by language (display name as Code::Stats shows it) ===
_LANGUAGE_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "AsciiDoc": ("asciidoc", "adoc"),
    "Assembly": ("asm",),
    "C": ("c", "h"),
    "Clojure": ("clj",),
    "Coq": ("coq",),
    "C++": ("cpp",),
    "Crystal": ("cr",),
    "C#": ("cs",),
    "CSS": ("css",),
    "CSV": ("csv",),
    "D": ("d",),
    "Dart": ("dart",),
    "Diff": ("diff", "patch"),
    "Emacs Lisp": ("el",),
    "Elm": ("elm",),
    "Erlang": ("erl",),
    "Elixir": ("ex",),
    "Fish": ("fish",),
    "F#": ("fs", "fsi", "fsx"),
    "GDScript": ("gd",),
    "Gleam": ("gleam",),
    "GLSL": ("glsl",),
    "Go": ("go",),
    "GraphQL": ("graphql", "gql"),
    "Handlebars": ("hbs",),
    "HTML (EEx)": ("heex",),
    "Haskell": ("hs",),
    "HTML": ("html", "htm"),
    "Haxe": ("hx",),
    "Hy": ("hy",),
    "Idris": ("idr",),
    "Java": ("java",),
    "Julia": ("jl",),
    "JavaScript": ("js", "mjs", "cjs"),
    "JSON": ("json",),
    "JavaScript (React)": ("jsx",),
    "KDL": ("kdl",),
    "Kotlin": ("kt", "ktm", "kts"),
    "Less": ("less",),
    "LFE": ("lfe",),
    "Common Lisp": ("lisp",),
    "Lua": ("lua",),
    "Markdown": ("md", "markdown"),
    "OCaml": ("ml", "mli"),
    "Nickel": ("ncl",),
    "Nim": ("nim",),
    "Nix": ("nix",),
    "PHP": ("php",),
    "PowerShell": ("ps1",),
    "PureScript": ("purs",),
    "Python": ("py",),
    "Ruby": ("rb",),
    "Racket": ("rkt",),
    "Roc": ("roc",),
    "Rust": ("rs",),
    "reStructuredText": ("rst",),
    "Scala": ("scala",),
    "Scheme": ("scm",),
    "SCSS": ("scss",),
    "Shell": ("sh",),
    "SQL": ("sql",),
    "SVG": ("svg",),
    "Swift": ("swift",),
    "LaTeX": ("tex",),
    "TOML": ("toml",),
    "TypeScript": ("ts", "mts", "cts"),
    "TypeScript (React)": ("tsx",),
    "Twig": ("twig",),
    "Plaintext": ("txt",),
    "Vala": ("vala",),
    "Visual Basic": ("vb",),
    "Vue": ("vue",),
    "WIT": ("wit",),
    "XML": ("xml",),
    "YAML": ("yaml", "yml"),
    "Zig": ("zig",),
}

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ext: language
    for language, extensions in _LANGUAGE_EXTENSIONS.items()
    for ext in extensions
}


def language_for_extension(extension: str) -> str | None:
    """Return the language for a bare extension ("rs", not ".rs"), or None."""
    return LANGUAGE_BY_EXTENSION.get(extension)


def document_path(uri: str) -> str:
    """Path component of a document URI, percent-decoded."""
    return unquote(urlparse(uri).path)


def language_for_uri(uri: str) -> str | None:
    """Resolve the language of a document from the extension in its URI.

    Files without a dot resolve through the whole filename, so a file called
    "rs" is Rust. Matching is case-sensitive.
    """
    filename = document_path(uri).rsplit("/", 1)[-1]
    extension = filename.rsplit(".", 1)[-1]
    return language_for_extension(extension)
