"""
Keyword tables used by the brief analysers and the candidate matcher.

All tables live on a single pydantic model so a deployment can override any
of them from a JSON file (``settings.lexicon_path``) without code changes.
Keys present in the file replace the defaults wholesale; absent keys keep
their defaults.
"""
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Lexicons(BaseModel):
    # ──────────────────────────────────────────────
    # Brief quality
    # ──────────────────────────────────────────────
    key_information_words: list[str] = [
        "budget", "cost", "price", "funding", "investment",
        "timeline", "deadline", "date", "duration", "when",
        "goal", "objective", "purpose", "aim", "target",
        "need", "require", "looking for", "seeking",
    ]
    actionable_words: list[str] = [
        "partner", "collaborate", "work with", "join", "support",
        "help", "assist", "provide", "offer", "share",
        "connect", "introduce", "recommend", "suggest",
    ]

    # ──────────────────────────────────────────────
    # Entities
    # ──────────────────────────────────────────────
    known_organizations: list[str] = [
        "greenpeace", "world wildlife fund", "wwf", "sierra club",
        "nature conservancy", "ocean conservancy", "environmental defense fund",
        "audubon society", "rainforest alliance", "carbonfund",
        "kelp forest alliance", "sea turtle conservancy", "coral reef alliance",
    ]
    organization_suffixes: list[str] = [
        "foundation", "fund", "society", "association", "institute",
        "council", "alliance", "coalition", "network", "organization",
        "conservancy", "club", "trust", "initiative", "collaborative",
    ]
    regions: list[str] = [
        "africa", "asia", "europe", "north america", "south america",
        "oceania", "antarctica", "middle east", "latin america",
        "caribbean", "pacific", "atlantic", "indian ocean",
    ]
    countries: list[str] = [
        "usa", "united states", "canada", "mexico", "brazil", "argentina",
        "uk", "britain", "france", "germany", "italy", "spain", "russia",
        "china", "india", "japan", "australia", "south africa", "kenya",
    ]
    geographic_indicators: list[str] = [
        "city", "state", "country", "nation", "region", "area", "zone",
        "community", "town", "village", "county", "province", "territory",
    ]
    common_capitalized_words: list[str] = [
        "The", "This", "That", "These", "Those", "We", "Our", "They", "Their",
        "Need", "Looking", "Seeking", "Want", "Like", "Love", "Best", "Good",
        "New", "Great", "Amazing", "Excellent", "Perfect", "Important",
        "Dear", "Please", "Thank", "Thanks", "Hello", "With", "From", "About",
        "Also", "Each", "Every", "Some", "When", "What", "Where", "Which",
        "Would", "Could", "Should", "Will", "Have", "Help", "Support",
    ]
    causes: dict[str, list[str]] = {
        "environmental": [
            "climate change", "global warming", "carbon emissions",
            "renewable energy", "solar", "wind", "sustainability",
            "conservation", "biodiversity", "deforestation", "reforestation",
            "ocean", "marine", "coral reef", "pollution", "plastic pollution",
            "air pollution", "water pollution", "endangered species",
            "habitat loss", "ecosystem", "environment",
        ],
        "social": [
            "education", "health", "healthcare", "poverty", "hunger",
            "homelessness", "human rights", "equality", "justice",
            "community development", "youth", "children", "elderly",
            "disabilities", "inclusion",
        ],
        "economic": [
            "economic development", "job creation", "employment", "training",
            "skills development", "entrepreneurship", "small business",
            "agriculture", "farming", "food security", "water access",
        ],
    }
    activities: dict[str, list[str]] = {
        "research": [
            "research", "study", "investigate", "analyze", "survey", "monitor",
            "evaluate", "assess", "measure", "track", "observe", "document",
        ],
        "conservation": [
            "protect", "conserve", "preserve", "restore", "rehabilitate",
            "clean", "cleanup", "plant", "grow", "maintain", "manage",
        ],
        "education": [
            "teach", "educate", "train", "inform", "awareness", "outreach",
            "workshop", "seminar", "campaign", "advocate", "promote",
        ],
        "support": [
            "help", "support", "assist", "provide", "fund", "donate",
            "volunteer", "partner", "collaborate", "coordinate", "organize",
        ],
    }
    metric_words: list[str] = [
        "goal", "target", "objective", "budget", "funding", "timeline",
        "deadline", "milestone", "kpi", "metric", "measure", "outcome",
    ]

    # ──────────────────────────────────────────────
    # Intent
    # ──────────────────────────────────────────────
    goals: dict[str, list[str]] = {
        "partnership": [
            "partner", "collaborate", "collaboration", "cooperation", "joint",
            "alliance", "work together", "team up", "join forces",
            "partnership", "cooperative",
        ],
        "funding": [
            "fund", "funding", "donate", "donation", "grant", "investment",
            "sponsor", "financial support", "money", "budget", "resources",
            "capital",
        ],
        "research": [
            "research", "study", "investigate", "analyze", "data", "survey",
            "monitor", "evaluate", "assessment", "scientific", "academic",
        ],
        "implementation": [
            "implement", "execute", "carry out", "deploy", "install", "build",
            "create", "establish", "set up", "launch", "run", "operate",
        ],
    }
    project_types: dict[str, list[str]] = {
        "conservation": ["protect", "preserve", "conserve", "safeguard", "habitat", "maintain"],
        "restoration": ["restore", "rehabilitate", "recover", "rebuild"],
        "tree_planting": [
            "plant trees", "tree planting", "reforestation", "afforestation",
            "plant seedlings", "tree seedlings", "forest creation",
            "tree establishment", "saplings", "tree nursery",
            "planting program", "tree campaign",
        ],
        "carbon_offset": [
            "carbon offset", "offsetting", "carbon credit", "carbon neutral",
            "net zero", "carbon negative", "sequestration", "carbon capture",
            "carbon storage", "carbon sink", "ghg reduction", "greenhouse gas",
            "co2 reduction", "carbon footprint", "carbon balancing",
        ],
        "research": ["study", "measure", "monitor", "survey", "analyze", "data", "count"],
        "protection": ["guard", "defend", "secure", "patrol", "prevent", "anti-poaching"],
        "clean_up": ["clean", "cleanup", "remove", "clear", "collect", "dispose", "eliminate"],
    }
    environmental_domains: dict[str, list[str]] = {
        "marine": [
            "ocean", "sea", "marine", "offshore", "deep sea", "open ocean",
            "pelagic", "coral reef", "seagrass", "kelp forest", "mangrove",
        ],
        "coastal": [
            "coastal", "coastline", "shore", "beach", "intertidal", "estuary",
            "delta", "lagoon", "salt marsh", "mangrove", "coral coast",
        ],
        "freshwater": [
            "river", "stream", "creek", "lake", "pond", "wetland", "marsh",
            "swamp", "bog", "fen", "riparian", "watershed", "aquatic",
        ],
        "forest": [
            "forest", "woodland", "rainforest", "temperate forest", "boreal",
            "taiga", "jungle", "tree", "canopy", "understory",
        ],
        "grassland": [
            "grassland", "prairie", "savanna", "steppe", "meadow", "plain",
            "pasture", "rangeland", "grass", "herbland",
        ],
        "wetland": [
            "wetland", "marsh", "swamp", "bog", "fen", "peatland", "mire",
            "moor", "vernal pool", "playa", "pocosin",
        ],
        "mountain": [
            "mountain", "alpine", "mountainous", "high altitude", "peak",
            "summit", "ridge", "slope", "crevasses", "glacier",
        ],
        "desert": [
            "desert", "arid", "dryland", "dune", "sahara", "xeric", "steppe",
            "wadi", "playa", "badlands",
        ],
        "arctic": [
            "arctic", "polar", "tundra", "permafrost", "ice cap", "glacier",
            "ice sheet", "frozen", "subarctic", "boreal",
        ],
        "urban": [
            "urban", "city", "metropolitan", "suburban", "industrial",
            "brownfield", "greenfield", "built environment", "infrastructure",
        ],
        "agricultural": [
            "farm", "agriculture", "cropland", "farmland", "ranch", "pasture",
            "orchard", "vineyard", "agricultural", "rural",
        ],
        "pollution": [
            "pollution", "contaminated", "toxic", "hazardous", "waste",
            "superfund", "brownfield", "industrial waste", "chemical spill",
        ],
        "climate": [
            "climate", "carbon", "emissions", "greenhouse", "sequestration",
            "mitigation", "adaptation", "weather", "atmospheric",
        ],
        "renewable": [
            "renewable", "solar", "wind", "geothermal", "hydroelectric",
            "biomass", "clean energy", "sustainable energy",
        ],
    }
    urgency_levels: dict[str, list[str]] = {
        "critical": ["urgent", "emergency", "crisis", "critical", "asap", "immediately", "right away"],
        "high": ["soon", "quickly", "promptly", "high priority", "important", "need"],
        "medium": ["in the near future", "coming weeks", "next month", "relatively soon"],
        "low": ["when possible", "eventually", "in time", "no rush", "flexible"],
    }
    timelines: dict[str, list[str]] = {
        "immediate": ["immediately", "right now", "today", "asap", "urgent"],
        "short-term": ["week", "weeks", "month", "months", "short term", "soon"],
        "long-term": ["year", "years", "long term", "ongoing", "permanent", "sustainable"],
        "ongoing": ["ongoing", "continuous", "regular", "recurring", "permanent"],
    }
    scopes: dict[str, list[str]] = {
        "global": ["global", "worldwide", "international", "around the world"],
        "national": ["national", "nationwide", "countrywide", "across the country"],
        "regional": ["regional", "statewide", "province-wide", "across the region"],
        "local": ["local", "neighborhood", "grassroots", "community-based"],
    }
    specific_indicators: list[str] = [
        "partner", "fund", "volunteer", "advocate", "research",
        "urgent", "local", "global", "immediate", "ongoing",
    ]

    # ──────────────────────────────────────────────
    # Tone
    # ──────────────────────────────────────────────
    positive_words: list[str] = [
        "excited", "happy", "pleased", "thrilled", "delighted", "grateful",
        "optimistic", "hopeful", "confident", "proud", "satisfied",
        "amazing", "excellent", "great", "wonderful", "fantastic",
        "good", "better", "best", "perfect", "successful", "effective",
        "opportunity", "potential", "progress", "achievement", "impact",
    ]
    negative_words: list[str] = [
        "frustrated", "disappointed", "concerned", "worried", "anxious",
        "urgent", "crisis", "emergency", "problem", "issue", "challenge",
        "difficult", "hard", "struggle", "fail", "failure", "poor",
        "bad", "terrible", "awful", "horrible", "disaster", "critical",
        "desperate", "need", "require", "lack", "missing", "insufficient",
    ]
    formal_indicators: list[str] = [
        "therefore", "furthermore", "moreover", "consequently", "accordingly",
        "sincerely", "respectfully", "dear", "regards", "cordially",
        "organization", "institution", "establishment", "corporation",
        "collaboration", "partnership", "cooperation",
    ]
    casual_indicators: list[str] = [
        "hey", "hi", "hello", "thanks", "thx", "gonna", "wanna",
        "cool", "awesome", "great", "yeah", "yep", "ok", "okay",
        "don't", "can't", "won't", "it's", "that's", "we're",
        "guys", "folks", "everyone", "y'all",
    ]
    tone_urgency_levels: dict[str, list[str]] = {
        "critical": ["urgent", "emergency", "crisis", "critical", "asap", "immediately"],
        "high": ["soon", "quickly", "promptly", "high priority", "important", "need"],
        "medium": ["in near future", "coming weeks", "next month", "relatively soon"],
        "low": ["when possible", "eventually", "in time", "no rush", "flexible"],
    }
    emotional_words: list[str] = [
        "feel", "feeling", "emotional", "passionate", "excited", "frustrated",
        "worried", "concerned", "hopeful", "optimistic", "pessimistic",
        "angry", "upset", "happy", "sad", "disappointed", "thrilled",
        "devastated", "ecstatic", "overwhelmed", "stressed", "relieved",
        "proud", "ashamed", "guilty", "confident", "insecure", "anxious",
    ]
    emotional_phrases: list[str] = [
        "i feel", "i believe", "i think", "i hope", "i wish", "i dream",
        "my heart", "soul", "spirit", "passion", "love", "hate",
        "desperately", "deeply", "truly", "sincerely", "genuinely",
    ]

    # ──────────────────────────────────────────────
    # Gaps
    # ──────────────────────────────────────────────
    vague_words: list[str] = ["help", "support", "work", "things", "stuff", "something"]

    # ──────────────────────────────────────────────
    # Matching
    # ──────────────────────────────────────────────
    stopwords: list[str] = [
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "help", "work", "support", "that", "this", "them",
        "they", "their", "are", "is", "be", "into", "should", "would",
        "could", "have", "has", "had", "was", "were", "been", "being", "get",
        "got", "will", "from", "about", "also", "more", "your", "ours",
        "what", "which", "when", "where", "there", "these", "those", "seek",
        "seeking", "looking", "want", "need", "some", "such", "than", "then",
    ]
    domain_keywords: dict[str, list[str]] = {
        "environmental": ["environment", "climate", "conservation", "sustainability", "green", "eco"],
        "agriculture": ["agriculture", "farming", "farmers", "regenerative", "organic", "soil", "crops"],
        "marine": ["marine", "ocean", "water", "aquatic", "fisheries", "coral", "coastal"],
        "education": ["education", "teaching", "learning", "school", "students", "training"],
        "health": ["health", "medical", "healthcare", "medicine", "patients", "wellness"],
        "wildlife": ["wildlife", "animals", "conservation", "habitat", "species", "biodiversity"],
        "energy": ["energy", "renewable", "solar", "wind", "clean", "power", "electricity"],
    }
    contextual_keywords: list[str] = [
        "partnership", "collaboration", "cooperation", "joint", "alliance",
        "funding", "grant", "investment", "donation", "sponsorship",
        "volunteer", "internship", "training", "capacity", "building",
        "advocacy", "campaign", "policy", "rights", "justice", "equity",
        "research", "science", "innovation", "technology", "data",
        "community", "development", "social", "economic", "global",
    ]
    geography_aliases: dict[str, str] = {
        "united states": "usa",
        "america": "usa",
        "britain": "uk",
        "united kingdom": "uk",
    }
    organization_type_words: list[str] = [
        "foundation", "alliance", "trust", "society", "institute", "network",
        "coalition", "conservancy", "collaborative", "fund", "association",
        "council", "club",
    ]
    intent_alignment: dict[str, dict[str, list[str]]] = {
        "partnership": {
            "name": ["alliance", "coalition", "network", "collaborative"],
            "focus": ["partnership", "collaboration", "community"],
        },
        "funding": {
            "name": ["fund", "foundation", "trust"],
            "focus": ["funding", "grants", "carbon markets"],
        },
        "research": {
            "name": ["institute", "conservancy", "society"],
            "focus": ["research", "science", "verification", "monitoring"],
        },
        "implementation": {
            "name": ["initiative", "generation", "rebuilding"],
            "focus": ["restoration", "planting", "cleanup", "reforestation", "rebuilding"],
        },
    }
    formal_organization_words: list[str] = ["institute", "foundation", "society", "trust"]
    advocacy_focus_words: list[str] = ["advocacy", "campaign", "justice", "rights"]
    research_focus_words: list[str] = ["research", "science", "verification"]


def load_lexicons(path: Optional[str] = None) -> Lexicons:
    """Build the lexicon tables, applying overrides from a JSON file if given."""
    if not path:
        return Lexicons()

    override_path = Path(path)
    with override_path.open(encoding="utf-8") as f:
        overrides = json.load(f)

    lexicons = Lexicons(**overrides)
    logger.info(f"Loaded lexicon overrides for {sorted(overrides)} from {override_path}")
    return lexicons


DEFAULT_LEXICONS = Lexicons()
