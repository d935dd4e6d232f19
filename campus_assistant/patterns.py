"""
Language and Query Patterns for the Campus Assistant

Word lists and regular expressions used by the language classifier, the
greeting short-circuit and the location tier. Kept as plain data so a new
word or phrase is a one-line change.
"""

from typing import Dict, Any
import re


# Malayalam Unicode block
MALAYALAM_CHAR_PATTERN = re.compile(r"[ഀ-ൿ]")

# Characters stripped from each token before scoring
TOKEN_PUNCTUATION = re.compile(r"[?!.,;:'\"()]")


def load_language_patterns() -> Dict[str, Any]:
    """
    Load the scoring tables for English / Manglish classification.

    Pattern Categories:
        - manglish_words: romanized Malayalam function words, verbs, pronouns
          and college-domain inflections (+2 per token, substring match)
        - manglish_suffixes: locative/verbal endings (+1 per token)
        - sentence_patterns: whole-sentence shapes (+2 per matching pattern)
        - english_function_words: common English function/question words (+1)
        - educational_english: loanwords shared by English and Manglish (+0.5)

    Returns:
        Dictionary with pattern categories for language scoring
    """
    patterns = {
        "manglish_words": [
            # Question words
            "enthu", "enthanu", "enthaa", "ethra", "evide", "evidey", "aaru", "aaranu",
            "engane", "enganey", "eppo", "eppol", "eppozha", "enthina", "enthinanu",
            "peru", "pera", "enn", "ennu", "enth",

            # Greetings and phrases
            "namaskaram", "namaskar", "sugham", "sughamano", "sughamaano",
            "nanni", "sthothram", "nannayittu", "kollam", "mathi",

            # Yes / no
            "undu", "undo", "illa", "illaa", "aanu", "anu", "aanallo", "allallo",
            "athe", "athey", "alle", "ille", "und", "undoo", "illaaa",

            # Verbs and common words
            "parayan", "parayoo", "parayamo", "undakum", "venam", "vende", "vendam",
            "ariyam", "ariyilla", "ariyumo", "poyi", "poyallo", "arinjilla",
            "nokku", "nokkoo", "nokkanam", "cheyyuka", "cheyyanam", "kudeyanu",
            "kitta", "kittum", "kittuo", "tharam", "tharao", "tharanam", "kittumo",
            "parayo", "parayumo", "tharo", "tharumo",

            # Pronouns
            "njan", "njaan", "enikk", "enikku", "enik", "nee", "ningal", "ningalu",
            "avan", "aval", "avar", "athil", "ini", "athinu", "ithu", "athu",
            "namukku", "nammal", "njangal", "nammude", "ente", "ninte", "avante",

            # College-specific inflections
            "collegil", "colleginte", "admissionu", "classil", "libraryil",
            "hostelil", "examinu", "feeu", "coursinu", "semesteril", "placementu",
            "principalinte", "hodinte", "departmentil", "labsil", "collegeinu",
            "feesu", "coursil", "branchil", "seatsil", "cutoff", "rankinu",

            # Time and place
            "innu", "innale", "naale", "ippo", "ippol", "angane", "ivide", "avide",
            "engott", "evdey", "evidanu", "evidaya", "evideyanu",

            # Sentence fillers
            "nokki", "kodukk", "aayirikkum", "cheyyum",
            "edukkam", "edukkumo", "thudangum", "kazhinju", "mathiyaayo", "okke",

            # Connectives
            "enna", "ennal", "atho", "allenkil", "pakshe", "pakshey", "pinneed",
            "pore", "kure", "ellam", "onnum", "onum", "onnumilla",

            # Verb forms
            "paranju", "kelkkoo", "kelkku", "varikku",
            "parayuvo", "ariyuvo", "kittuvo", "tharuvo", "cheyyuvo",
        ],
        "manglish_suffixes": ["il", "inu", "anu", "allo", "umo", "aam", "um", "oo"],
        "sentence_patterns": [
            r"enthu\s+.+\s*\??",
            r"evide\s+.+",
            r"engane\s+.+",
            r"ariyumo\s*\??",
            r".+\s+aanu\s*\??",
            r".+\s+undu\s*\??",
            r".+\s+entha(nu)?\s*\??",
            r".+il\s+.+",
        ],
        "english_function_words": [
            "what", "where", "when", "how", "who", "which", "why",
            "is", "are", "the", "a", "an", "there", "do", "does", "can",
            "you", "your", "tell", "me", "about", "of", "for", "to", "i",
            "please", "any", "have", "has", "in",
        ],
        "educational_english": [
            "admission", "fee", "fees", "course", "college", "library", "hostel",
            "placement", "exam", "semester", "department", "faculty", "principal",
            "scholarship", "certificate", "degree", "engineering", "computer", "science",
        ],
    }

    return patterns


def load_query_patterns() -> Dict[str, Any]:
    """
    Load the trigger tables used by the resolver tiers.

    Returns:
        Dictionary with greeting words, wayfinding triggers and the filler
        phrases stripped before a location lookup
    """
    return {
        "greeting_words": [
            "hi", "hello", "hey", "hai", "namaste", "namaskaram",
            "good morning", "good afternoon", "good evening",
            "നമസ്കാരം", "ഹായ്",
        ],
        "location_triggers": [
            "where", "location", "direction", "how to reach", "find", "navigate",
            "evide", "evidey", "evidanu", "sthalam", "sthithi", "എവിടെ", "സ്ഥലം",
            "map", "maps", "go to", "reach", "way to", "route", "engane pokam",
        ],
        "location_filler_pattern": r"\b(where is|how to reach|navigate to|find|the)\b",
    }


def compile_patterns(patterns: Dict[str, Any]) -> Dict[str, Any]:
    """
    Compile regex patterns for performance.

    Args:
        patterns: Raw patterns dictionary from load_language_patterns() or
            load_query_patterns()

    Returns:
        Patterns dictionary with compiled regex objects; lists of words are
        copied as tuples
    """
    compiled = {}

    for key, value in patterns.items():
        if key == "sentence_patterns":
            compiled[key] = tuple(re.compile(pattern, re.IGNORECASE) for pattern in value)
        elif key.endswith("_pattern"):
            compiled[key] = re.compile(value, re.IGNORECASE)
        elif isinstance(value, list):
            compiled[key] = tuple(value)
        else:
            compiled[key] = value

    return compiled


def contains_malayalam(text: str) -> bool:
    """True when any character of ``text`` is in the Malayalam block."""
    return bool(text) and MALAYALAM_CHAR_PATTERN.search(text) is not None
