"""
Conversational Rewriter

Rewrites a chat prompt into a compact, structured request.

Stages run in a fixed order, each a pure function of its input:
normalize, extract code, remove fluff, condense, deduplicate, extract
metadata, detect intent, restore code, reassemble. Code spans are swapped
for placeholders before any rewriting, so no rule ever sees code.
"""

import logging
import re
from dataclasses import dataclass, field

from .config import OptimizerConfig
from .models import Intent

logger = logging.getLogger(__name__)

_IC = re.IGNORECASE
_ICM = re.IGNORECASE | re.MULTILINE

PLACEHOLDER_TEMPLATE = "__CODE_BLOCK_{}__"
_PLACEHOLDER = re.compile(r"__CODE_BLOCK_(\d+)__")

_FENCED_CODE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`[^`\n]+`")

# Rest of the sentence, used by rules that drop a whole emotional clause
_CLAUSE = r"[^.!?\n]*[.!?]?"

# Filler, hedging, emotional and help-begging language. Every rule is
# applied; later rules see the output of earlier ones.
FLUFF_RULES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, flags), replacement)
    for pattern, flags, replacement in (
        # Greetings and openers
        (r"^(?:hey|hi|hello)(?:\s+there)?\b[\s,!.]*", _IC, ""),
        (r"^(?:(?:so|okay|ok|alright|well)(?:,\s*|\s+))+", _IC, ""),
        # Emotional filler
        (r"\bi'?m\s+(?:so\s+|really\s+)?(?:frustrated|confused|stuck|lost|going\s+crazy)\b" + _CLAUSE, _IC, ""),
        (r"\bi'?ve\s+been\s+(?:trying|working|debugging|struggling)\b" + _CLAUSE, _IC, ""),
        (r"\bthis\s+is\s+(?:so\s+|really\s+)?(?:frustrating|confusing|annoying|urgent|critical)\b" + _CLAUSE, _IC, ""),
        (r"\bi'?ve\s+tried\s+everything\b[.!?]?", _IC, ""),
        (r"\bnothing\s+(?:works|is\s+working)\b[.!?]?", _IC, ""),
        (r"\bi\s+don'?t\s+know\s+(?:why|what\s+to\s+do)\b" + _CLAUSE, _IC, ""),
        (r"\bmy\s+(?:deadline|boss|manager|client)\s+(?:is|will\s+be|wants)\b" + _CLAUSE, _IC, ""),
        (r"\bi\s+(?:really\s+)?need\s+this\s+working\b" + _CLAUSE, _IC, ""),
        (r"\b(?:ugh|argh)\b[.!]*", _IC, ""),
        # Help-begging
        (r"\b(?:can|could)\s+(?:you|someone|anyone)\s+(?:please\s+)?help(?:\s+me)?\b", _IC, ""),
        (r"\bplease\s+help(?:\s+me)?\b[.!]*", _IC, ""),
        (r"\bi\s+need\s+(?:some\s+)?help(?:\s+with)?\b", _IC, ""),
        (r"\bany\s+help\s+(?:would\s+be|is)\s+(?:greatly\s+|much\s+)?appreciated\b[.!]*", _IC, ""),
        # Sign-offs
        (r"\bthanks\s+in\s+advance\b[.!]*", _IC, ""),
        (r"\b(?:thanks|thank\s+you)(?:\s+(?:so\s+much|a\s+lot))?[.!]*[ \t]*$", _ICM, ""),
        # Hedges and fillers
        (r"\b(?:i\s+think|i\s+believe|i\s+guess|i\s+suppose|i\s+mean|you\s+know)\b,?", _IC, ""),
        (r"\b(?:basically|essentially|actually|literally|honestly|really|very|just|simply|obviously|clearly)\b,?", _IC, ""),
        (r"\b(?:kind|sort)\s+of\b", _IC, ""),
        (
            r"\b(?:to\s+be\s+honest|in\s+my\s+opinion|at\s+the\s+end\s+of\s+the\s+day|the\s+thing\s+is"
            r"|as\s+you\s+can\s+see|if\s+that\s+makes\s+sense|does\s+that\s+make\s+sense"
            r"|if\s+you\s+know\s+what\s+i\s+mean)\b[,?]?",
            _IC,
            "",
        ),
        (
            r"\b(?:please\s+note\s+that|it\s+is\s+important\s+to\s+note\s+that|i\s+was\s+wondering\s+if"
            r"|i\s+would\s+appreciate\s+it\s+if\s+you\s+could|would\s+it\s+be\s+possible\s+to)\b",
            _IC,
            "",
        ),
        (r"\b(?:as\s+soon\s+as\s+possible|asap)\b", _IC, ""),
    )
)

# Verbose construction -> terse template. Order matters: the "Build:" rules
# must run before the generic phrase rewrites below them.
CONDENSE_RULES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, _IC), replacement)
    for pattern, replacement in (
        (r"\bi\s+want\s+to\s+build\s+(?:an?\s+)?", "Build: "),
        (r"\bi\s+would\s+like\s+(?:to\s+)?(?:build|create|make|have)\s+(?:an?\s+)?", "Build: "),
        (r"\bi\s+need\s+to\s+(?:build|create|make|implement)\s+(?:an?\s+)?", "Build: "),
        (r"\bi\s+want\s+to\s+(?:create|make|implement)\s+(?:an?\s+)?", "Build: "),
        (r"\b(?:the\s+system|it)\s+should\s+use\s+", "Use: "),
        (r"\b(?:it\s+)?should\s+be\s+stored\s+in\s+", "Store: "),
        (r"\bi\s+would\s+like\s+it\s+to\s+be\s+", ""),
        (r"\bthere\s+should\s+(?:only\s+)?(?:ever\s+)?be\s+", "Constraint: "),
        (r"\bin\s+order\s+to\b", "to"),
        (r"\bdue\s+to\s+the\s+fact\s+that\b", "because"),
        (r"\bin\s+spite\s+of\s+the\s+fact\s+that\b", "although"),
        (r"\bat\s+this\s+point\s+in\s+time\b", "now"),
        (r"\bfor\s+the\s+purpose\s+of\b", "for"),
        (r"\bin\s+the\s+event\s+that\b", "if"),
        (r"\bwill\s+be\s+able\s+to\b", "can"),
        (r"\bhas\s+the\s+ability\s+to\b", "can"),
        (r"\bis\s+going\s+to\b", "will"),
        (r"\bwith\s+(?:regard|reference)\s+to\b", "regarding"),
        (r"\buntil\s+such\s+time\s+as\b", "until"),
        # Labels produced twice by overlapping rules
        (r"\b(Build|Use|Store|Constraint):\s*\1:", r"\1:"),
        (r"\b(Build|Use|Store|Constraint):[ \t]*:", r"\1:"),
    )
)

# Technology vocabulary for the "Stack" line
STACK_VOCABULARY: tuple[str, ...] = (
    # Languages
    "typescript", "javascript", "python", "java", "c++", "c#", "rust", "golang", "ruby", "php", "kotlin",
    # Frameworks and runtimes
    "react", "vue", "angular", "svelte", "next.js", "nextjs", "nuxt", "gatsby", "node.js", "nodejs",
    "deno", "express.js", "expressjs", "django", "flask", "fastapi", "spring boot", "graphql",
    # Data stores
    "mongodb", "postgresql", "postgres", "mysql", "sqlite", "dynamodb", "redis",
    # Cloud and infrastructure
    "aws", "gcp", "azure", "vercel", "netlify", "docker", "kubernetes", "k8s", "oauth",
)

_STACK_PATTERN = re.compile(
    r"(?<![\w.#+])(?:"
    + "|".join(re.escape(term).replace(r"\ ", r"\s+") for term in sorted(STACK_VOCABULARY, key=len, reverse=True))
    + r")(?![\w#+])",
    _IC,
)

_PHRASE = r"([^.!?\n]+)"

REQUIREMENT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, _IC)
    for pattern in (
        r"\bmust\s+(?:be|have|include|support)\s+" + _PHRASE,
        r"\bshould\s+(?:be|have|include|support)\s+" + _PHRASE,
        r"\bneeds?\s+to\s+" + _PHRASE,
        r"\brequire[sd]?\s+" + _PHRASE,
    )
)

CONSTRAINT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, _IC)
    for pattern in (
        r"\bwithout\s+" + _PHRASE,
        r"\b(?:can'?t|cannot)\s+use\s+" + _PHRASE,
        r"\bno\s+" + _PHRASE,
        r"\bavoid\s+" + _PHRASE,
    )
)

# Intent buckets, first match wins
INTENT_RULES: tuple[tuple[Intent, re.Pattern[str]], ...] = (
    (Intent.FIX, re.compile(r"\b(?:error|bug|fix|broken)|\bnot\s+working\b|\bdoesn'?t\s+work\b", _IC)),
    (Intent.EXPLAIN, re.compile(r"\b(?:explain|understand)|\b(?:how\s+does|what\s+is|why\s+does)\b", _IC)),
    (
        Intent.IMPLEMENT,
        re.compile(
            r"\b(?:creat(?:e|es|ed|ing)|build(?:s|ing)?|implement(?:s|ed|ing)?|mak(?:e|es|ing)"
            r"|add(?:s|ed|ing)?|writ(?:e|es|ing))\b",
            _IC,
        ),
    ),
    (Intent.OPTIMIZE, re.compile(r"\b(?:review|optimi[sz]e|improve|refactor|better)", _IC)),
)

INTENT_HEADERS: dict[Intent, str] = {
    Intent.FIX: "**Bug Fix Request**",
    Intent.EXPLAIN: "**Explanation Request**",
    Intent.IMPLEMENT: "**Implementation Request**",
    Intent.OPTIMIZE: "**Optimization Request**",
    Intent.GENERAL: "**Request**",
}


@dataclass
class PromptMetadata:
    """Facts extracted from the original prompt."""

    stack: list[str] = field(default_factory=list)
    requirements: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)


@dataclass
class RewriteResult:
    """Output of the conversational pipeline."""

    text: str
    intent: Intent
    metadata: PromptMetadata
    code_blocks: list[str] = field(default_factory=list)

    @property
    def stack(self) -> list[str]:
        return self.metadata.stack

    @property
    def requirements(self) -> list[str]:
        return self.metadata.requirements

    @property
    def constraints(self) -> list[str]:
        return self.metadata.constraints


def normalize(text: str) -> str:
    """Collapse line endings, tabs, space runs and blank-line runs, then trim."""
    text = text.replace("\r\n", "\n")
    text = text.replace("\t", "  ")
    text = re.sub(r" +", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


_PUNCTUATION_RUN = re.compile(r"[.!?,;:](?:\s*[.!?,;:])+")
# Conjunction stranded before punctuation or line end once its clause was removed
_DANGLING_CONJUNCTION = re.compile(r"[,;]?\s+(?:and|but|or)(?=\s*(?:[.!?,;:]|$))", _IC)


def _collapse_punctuation(match: re.Match[str]) -> str:
    """Sentence terminators win over separators; otherwise keep the last mark."""
    marks = re.sub(r"\s+", "", match.group(0))
    for mark in marks:
        if mark in ".!?":
            return mark
    return marks[-1]


def _tidy_lines(text: str) -> str:
    """Clean up spacing, orphaned punctuation and conjunctions left behind by removals."""
    tidied = []
    for line in text.split("\n"):
        line = re.sub(r"[ \t]{2,}", " ", line)
        line = re.sub(r"\s+([.,!?;:])(?=\s|$)", r"\1", line)
        line = _DANGLING_CONJUNCTION.sub("", line)
        line = _PUNCTUATION_RUN.sub(_collapse_punctuation, line)
        line = re.sub(r"^[\s.,!?;:]+", "", line)
        line = re.sub(r"[,;]+$", "", line.strip())
        tidied.append(line.strip())
    return "\n".join(tidied)


def _unique_phrases(
    patterns: tuple[re.Pattern[str], ...],
    text: str,
    min_length: int,
    max_length: int,
) -> list[str]:
    """Collect captured phrases in text order, dropping duplicates and out-of-range lengths."""
    found = []
    for pattern in patterns:
        for match in pattern.finditer(text):
            found.append((match.start(), match.group(1).strip()))

    phrases: list[str] = []
    for _, phrase in sorted(found, key=lambda item: item[0]):
        if min_length < len(phrase) < max_length and phrase not in phrases:
            phrases.append(phrase)
    return phrases


class ConversationalRewriter:
    """
    Rule-based prompt rewriter.

    Holds only configuration; every call works on local state, so one
    instance can serve concurrent callers.
    """

    def __init__(self, config: OptimizerConfig | None = None) -> None:
        """
        Initialize rewriter.

        Args:
            config: Engine thresholds (defaults if None)
        """
        self.config = config or OptimizerConfig()

    def rewrite(self, text: str) -> RewriteResult | None:
        """
        Run the full pipeline over a prompt.

        Args:
            text: Original prompt

        Returns:
            RewriteResult, or None when nothing but fluff was left
        """
        body, code_blocks = self.extract_code(normalize(text))
        body = self.remove_fluff(body)
        body = self.condense(body)
        body = self.dedupe_lines(body)

        metadata = self.extract_metadata(text)
        intent = self.detect_intent(text)

        body = normalize(self.restore_code(body, code_blocks))
        if not body:
            logger.debug("Prompt reduced to nothing, keeping original")
            return None

        return RewriteResult(
            text=self.assemble(body, intent, metadata),
            intent=intent,
            metadata=metadata,
            code_blocks=code_blocks,
        )

    def extract_code(self, text: str) -> tuple[str, list[str]]:
        """
        Replace fenced blocks, then inline spans, with placeholders.

        Returns:
            Text with placeholders and the original code spans in order
        """
        code_blocks: list[str] = []

        def _stash(match: re.Match[str]) -> str:
            code_blocks.append(match.group(0))
            return PLACEHOLDER_TEMPLATE.format(len(code_blocks) - 1)

        text = _FENCED_CODE.sub(_stash, text)
        text = _INLINE_CODE.sub(_stash, text)
        return text, code_blocks

    def remove_fluff(self, text: str) -> str:
        """Apply every fluff rule in order."""
        for pattern, replacement in FLUFF_RULES:
            text = pattern.sub(replacement, text)
        return _tidy_lines(text)

    def condense(self, text: str) -> str:
        """Rewrite verbose constructions into terse labels."""
        for pattern, replacement in CONDENSE_RULES:
            text = pattern.sub(replacement, text)
        return _tidy_lines(text)

    def dedupe_lines(self, text: str) -> str:
        """Drop repeated lines; short lines are always kept."""
        seen: set[str] = set()
        kept = []
        for line in text.split("\n"):
            key = line.strip().lower()
            if len(key) < self.config.dedup_min_line_length:
                kept.append(line)
                continue
            if key not in seen:
                seen.add(key)
                kept.append(line)
        return "\n".join(kept)

    def extract_metadata(self, text: str) -> PromptMetadata:
        """Extract stack, requirements and constraints from the original prompt."""
        stack: list[str] = []
        for match in _STACK_PATTERN.finditer(text):
            item = re.sub(r"\s+", " ", match.group(0).lower()).replace(".", "")
            if item not in stack:
                stack.append(item)

        return PromptMetadata(
            stack=stack,
            requirements=_unique_phrases(
                REQUIREMENT_PATTERNS,
                text,
                self.config.requirement_min_length,
                self.config.requirement_max_length,
            ),
            constraints=_unique_phrases(
                CONSTRAINT_PATTERNS,
                text,
                self.config.constraint_min_length,
                self.config.constraint_max_length,
            ),
        )

    def detect_intent(self, text: str) -> Intent:
        """Return the first intent bucket whose keywords occur in text."""
        for intent, pattern in INTENT_RULES:
            if pattern.search(text):
                return intent
        return Intent.GENERAL

    def restore_code(self, text: str, code_blocks: list[str]) -> str:
        """
        Put code spans back in place of their placeholders.

        Spans whose placeholder was consumed by a removed clause are
        appended at the end so code is never lost.
        """
        restored: set[int] = set()

        def _restore(match: re.Match[str]) -> str:
            index = int(match.group(1))
            if index >= len(code_blocks):
                return match.group(0)
            restored.add(index)
            return code_blocks[index]

        text = _PLACEHOLDER.sub(_restore, text)
        missing = [block for index, block in enumerate(code_blocks) if index not in restored]
        if missing:
            text = "\n".join([text, *missing])
        return text

    def assemble(self, body: str, intent: Intent, metadata: PromptMetadata) -> str:
        """Build the final structured prompt."""
        parts = [INTENT_HEADERS.get(intent, INTENT_HEADERS[Intent.GENERAL]), "", body]

        if metadata.stack:
            parts.extend(["", f"**Stack**: {', '.join(metadata.stack)}"])

        if metadata.requirements:
            parts.extend(["", "**Requirements**:"])
            parts.extend(f"- {requirement}" for requirement in metadata.requirements)

        if metadata.constraints:
            parts.extend(["", "**Constraints**:"])
            parts.extend(f"- {constraint}" for constraint in metadata.constraints)

        return "\n".join(parts)
