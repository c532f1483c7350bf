"""
Shared Preprocessing Engine
===========================

The components every msbasic-port pipeline is built from, leaves first:

- **lines**: Line Classifier and the owned LineCursor
- **blocks**: Block Extractor for ``<...>`` blocks and ``.IF``/``.ENDIF`` spans
- **symbols**: partial-knowledge Symbol Table with FIRST/LAST value policies
- **conditions**: ternary Condition Evaluators (symbol-driven and table-driven)
- **resolver**: Conditional Resolver iterated to a fixed point
- **macros**: closed-dictionary Macro Expander
- **repeat**: Repeat Expander
- **rewriter**: table-driven Instruction Rewriter

Data flow::

    raw lines -> Conditional Resolver -> Macro/Repeat Expander
              -> Instruction Rewriter -> output lines
"""

from msbasic_port.engine.lines import LineCursor, SourceLine, classify_line
from msbasic_port.engine.blocks import (
    Block,
    conditional_of,
    extract_block,
    extract_directive_block,
)
from msbasic_port.engine.symbols import (
    CONFIG_SYMBOLS,
    PLATFORM_SELECTOR,
    TRANSIENT_SYMBOLS,
    VARIABLE_SYMBOLS,
    Symbol,
    SymbolTable,
    ValuePolicy,
    parse_overrides,
)
from msbasic_port.engine.conditions import (
    REALIO_VALIDATION_GUARD,
    Condition,
    SymbolEvaluator,
    TableEvaluator,
    Ternary,
    parse_condition,
)
from msbasic_port.engine.resolver import (
    ConditionalResolver,
    ResolutionStats,
    resolve_until_unchanged,
)
from msbasic_port.engine.macros import MACRO_TABLE, MacroExpander
from msbasic_port.engine.repeat import RepeatExpander
from msbasic_port.engine.rewriter import (
    RULES,
    InstructionRewriter,
    RewriteRule,
    format_hex,
    parse_octal,
)

__all__ = [
    # Lines
    "LineCursor",
    "SourceLine",
    "classify_line",
    # Blocks
    "Block",
    "extract_block",
    "conditional_of",
    "extract_directive_block",
    # Symbols
    "CONFIG_SYMBOLS",
    "PLATFORM_SELECTOR",
    "TRANSIENT_SYMBOLS",
    "VARIABLE_SYMBOLS",
    "Symbol",
    "SymbolTable",
    "ValuePolicy",
    "parse_overrides",
    # Conditions
    "REALIO_VALIDATION_GUARD",
    "Condition",
    "SymbolEvaluator",
    "TableEvaluator",
    "Ternary",
    "parse_condition",
    # Resolver
    "ConditionalResolver",
    "ResolutionStats",
    "resolve_until_unchanged",
    # Expanders
    "MACRO_TABLE",
    "MacroExpander",
    "RepeatExpander",
    # Rewriter
    "RULES",
    "InstructionRewriter",
    "RewriteRule",
    "format_hex",
    "parse_octal",
]
