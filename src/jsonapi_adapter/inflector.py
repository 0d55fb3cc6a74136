"""
English inflection used to derive URL path segments from resource types.

Rules are held by an ``Inflector`` instance rather than module state so that an
adapter can be configured with additional irregular or uncountable words
without affecting other adapters.
"""

from __future__ import annotations

import re
import typing as t

import structlog

log = structlog.get_logger(__name__)

Rule = tuple[re.Pattern[str], str]

_DECAMELIZE_PATTERN = re.compile(r"([a-z\d])([A-Z])")
_DASH_SEPARATORS_PATTERN = re.compile(r"[ _]")
_LAST_WORD_PATTERN = re.compile(r"^(.*[\W_])?([^\W_]+)$")

# Rules are evaluated last-to-first, so later entries take precedence.
_PLURAL_RULES: tuple[tuple[str, str], ...] = (
    (r"$", "s"),
    (r"s$", "s"),
    (r"^(ax|test)is$", r"\1es"),
    (r"(octop|vir)us$", r"\1i"),
    (r"(octop|vir)i$", r"\1i"),
    (r"(alias|status|bonus)$", r"\1es"),
    (r"(bu)s$", r"\1ses"),
    (r"(buffal|tomat)o$", r"\1oes"),
    (r"([ti])um$", r"\1a"),
    (r"([ti])a$", r"\1a"),
    (r"sis$", "ses"),
    (r"(?:([^f])fe|([lr])f)$", r"\1\2ves"),
    (r"(hive)$", r"\1s"),
    (r"([^aeiouy]|qu)y$", r"\1ies"),
    (r"(x|ch|ss|sh)$", r"\1es"),
    (r"(matr|vert|ind)(?:ix|ex)$", r"\1ices"),
    (r"^(m|l)ouse$", r"\1ice"),
    (r"^(m|l)ice$", r"\1ice"),
    (r"^(ox)$", r"\1en"),
    (r"^(oxen)$", r"\1"),
    (r"(quiz)$", r"\1zes"),
)

_SINGULAR_RULES: tuple[tuple[str, str], ...] = (
    (r"s$", ""),
    (r"(ss)$", r"\1"),
    (r"(n)ews$", r"\1ews"),
    (r"([ti])a$", r"\1um"),
    (r"((a)naly|(b)a|(d)iagno|(p)arenthe|(p)rogno|(s)ynop|(t)he)(sis|ses)$", r"\1sis"),
    (r"(^analy)(sis|ses)$", r"\1sis"),
    (r"([^f])ves$", r"\1fe"),
    (r"(hive)s$", r"\1"),
    (r"(tive)s$", r"\1"),
    (r"([lr])ves$", r"\1f"),
    (r"([^aeiouy]|qu)ies$", r"\1y"),
    (r"(s)eries$", r"\1eries"),
    (r"(m)ovies$", r"\1ovie"),
    (r"(x|ch|ss|sh)es$", r"\1"),
    (r"^(m|l)ice$", r"\1ouse"),
    (r"(bus)(es)?$", r"\1"),
    (r"(o)es$", r"\1"),
    (r"(shoe)s$", r"\1"),
    (r"(cris|test)(is|es)$", r"\1is"),
    (r"^(a)x[ie]s$", r"\1xis"),
    (r"(octop|vir)(us|i)$", r"\1us"),
    (r"(alias|status|bonus)(es)?$", r"\1"),
    (r"^(ox)en", r"\1"),
    (r"(vert|ind)ices$", r"\1ex"),
    (r"(matr)ices$", r"\1ix"),
    (r"(quiz)zes$", r"\1"),
    (r"(database)s$", r"\1"),
)

_IRREGULAR: tuple[tuple[str, str], ...] = (
    ("person", "people"),
    ("man", "men"),
    ("child", "children"),
    ("sex", "sexes"),
    ("move", "moves"),
    ("cow", "kine"),
    ("zombie", "zombies"),
)

_UNCOUNTABLE: tuple[str, ...] = (
    "equipment",
    "information",
    "rice",
    "money",
    "species",
    "series",
    "fish",
    "sheep",
    "jeans",
    "police",
)


def decamelize(value: str) -> str:
    """
    Convert ``camelCase`` words into ``lower_underscored`` words.

    Parameters
    ----------
    value : str
        Word to convert.

    Returns
    -------
    str
        Decamelized word.
    """
    return _DECAMELIZE_PATTERN.sub(r"\1_\2", value).lower()


def dasherize(value: str) -> str:
    """
    Convert a camelCase, underscored, or spaced name to ``lower-dashed`` form.

    Applying this function to its own output returns the same value.

    Parameters
    ----------
    value : str
        Name to convert.

    Returns
    -------
    str
        Dash-cased name.
    """
    return _DASH_SEPARATORS_PATTERN.sub("-", decamelize(value))


class Inflector:
    """
    Pluralize and singularize English words from an editable rule set.

    Parameters
    ----------
    plurals : typing.Iterable[tuple[str, str]] | None, optional
        Plural ``(pattern, replacement)`` rules, lowest precedence first.
    singulars : typing.Iterable[tuple[str, str]] | None, optional
        Singular ``(pattern, replacement)`` rules, lowest precedence first.
    irregular : typing.Iterable[tuple[str, str]] | None, optional
        ``(singular, plural)`` pairs that bypass the rules.
    uncountable : typing.Iterable[str] | None, optional
        Words whose plural and singular forms are identical.
    """

    def __init__(
        self,
        *,
        plurals: t.Iterable[tuple[str, str]] | None = None,
        singulars: t.Iterable[tuple[str, str]] | None = None,
        irregular: t.Iterable[tuple[str, str]] | None = None,
        uncountable: t.Iterable[str] | None = None,
    ) -> None:
        self._plurals: list[Rule] = []
        self._singulars: list[Rule] = []
        self._irregular_plurals: dict[str, str] = {}
        self._irregular_singulars: dict[str, str] = {}
        self._uncountable: set[str] = set()

        for pattern, replacement in plurals or ():
            self.plural(pattern, replacement)
        for pattern, replacement in singulars or ():
            self.singular(pattern, replacement)
        for singular, plural in irregular or ():
            self.irregular(singular, plural)
        for word in uncountable or ():
            self.uncountable(word)

    @classmethod
    def english(cls) -> Inflector:
        """
        Build an inflector loaded with the default English rules.

        Returns
        -------
        Inflector
            Fresh inflector that can be customized independently.
        """
        return cls(
            plurals=_PLURAL_RULES,
            singulars=_SINGULAR_RULES,
            irregular=_IRREGULAR,
            uncountable=_UNCOUNTABLE,
        )

    def plural(self, pattern: str, replacement: str) -> None:
        """Add a plural rule that takes precedence over existing ones."""
        self._plurals.append((re.compile(pattern, re.IGNORECASE), replacement))

    def singular(self, pattern: str, replacement: str) -> None:
        """Add a singular rule that takes precedence over existing ones."""
        self._singulars.append((re.compile(pattern, re.IGNORECASE), replacement))

    def irregular(self, singular: str, plural: str) -> None:
        """
        Register an irregular ``singular``/``plural`` pair.

        Parameters
        ----------
        singular : str
            Singular form.
        plural : str
            Plural form.
        """
        self._irregular_plurals[singular.lower()] = plural.lower()
        self._irregular_singulars[plural.lower()] = singular.lower()

    def uncountable(self, word: str) -> None:
        """Register a word that is never inflected."""
        self._uncountable.add(word.lower())

    def pluralize(self, word: str) -> str:
        """
        Return the plural form of the last word in ``word``.

        Parameters
        ----------
        word : str
            Singular word, optionally prefixed (``"blog-post"``).

        Returns
        -------
        str
            Pluralized word.
        """
        return self._inflect(
            word=word,
            rules=self._plurals,
            irregular=self._irregular_plurals,
            already_inflected=self._irregular_singulars,
        )

    def singularize(self, word: str) -> str:
        """
        Return the singular form of the last word in ``word``.

        Parameters
        ----------
        word : str
            Plural word, optionally prefixed (``"blog-posts"``).

        Returns
        -------
        str
            Singularized word.
        """
        return self._inflect(
            word=word,
            rules=self._singulars,
            irregular=self._irregular_singulars,
            already_inflected=self._irregular_plurals,
        )

    def _inflect(
        self,
        *,
        word: str,
        rules: list[Rule],
        irregular: dict[str, str],
        already_inflected: dict[str, str],
    ) -> str:
        if not word or not word.strip():
            return word

        match = _LAST_WORD_PATTERN.match(word)
        if match is None:
            return word
        prefix = match.group(1) or ""
        last_word = match.group(2)
        lowered = last_word.lower()

        if lowered in self._uncountable:
            return word

        # Words that already are the irregular target form are left alone.
        if lowered in already_inflected and lowered not in irregular:
            return word

        if lowered in irregular:
            inflected = irregular[lowered]
            if last_word[0].isupper():
                inflected = inflected[0].upper() + inflected[1:]
            return prefix + inflected

        for pattern, replacement in reversed(rules):
            if pattern.search(last_word):
                return prefix + pattern.sub(replacement, last_word, count=1)

        log.debug(event="No inflection rule matched", word=word)
        return word
