from __future__ import annotations

import logging
import re
from functools import partial
from pathlib import Path
from typing import Callable, Iterable

from unidecode import unidecode

from .errors import ParseError
from .extractor import extract_text, extract_text_async

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Unknown"
HEADER_WINDOW = 10
NAME_WINDOW = 3
MERGE_THRESHOLD = 50

RECORD_KEYS = (
    "name",
    "contact",
    "profile",
    "education",
    "experience",
    "projects",
    "skills",
    "achievements",
    "languages",
    "interests",
)

SECTION_PATTERNS = {
    "contact": re.compile(r"^(?:contact|personal\s+info|contact\s+info)"),
    "profile": re.compile(
        r"^(?:profile|summary|objective|about|professional\s+summary|career\s+objective)"
    ),
    "education": re.compile(
        r"^(?:education|academic|qualification|degree|university|college)"
    ),
    "experience": re.compile(
        r"^(?:experience|work|employment|professional|career|internship)"
    ),
    "projects": re.compile(r"^(?:projects|portfolio|work\s+samples|personal\s+projects)"),
    "skills": re.compile(
        r"^(?:skills|technical|technologies|programming|competencies|expertise)"
    ),
    "achievements": re.compile(
        r"^(?:achievements|awards|honors|accomplishments|certifications|certificates)"
    ),
    "languages": re.compile(r"^(?:languages|linguistic)"),
    "interests": re.compile(r"^(?:interests|hobbies|activities)"),
}

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(
    r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}"
    r"|\+?\d{1,3}[-.\s]?\d{3}[-.\s]?\d{3}[-.\s]?\d{4}"
)
LINKEDIN_RE = re.compile(r"(?:https?://)?(?:www\.)?linkedin\.com/in/[a-zA-Z0-9-]+", re.I)
GITHUB_RE = re.compile(r"(?:https?://)?(?:www\.)?github\.com/[a-zA-Z0-9-]+", re.I)
PORTFOLIO_RE = re.compile(
    r"(?:https?://)?(?:www\.)?[a-zA-Z0-9-]+\.[a-z]{2,}(?:/[^\s]*)?", re.I
)

# declaration order is the scan order for every header line
CONTACT_PATTERNS = {
    "email": EMAIL_RE,
    "phone": PHONE_RE,
    "linkedin": LINKEDIN_RE,
    "github": GITHUB_RE,
    "portfolio": PORTFOLIO_RE,
}

_MONTH_DATE = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{4}"
DATE_RANGE_RE = re.compile(
    rf"(?:{_MONTH_DATE}|\d{{4}})\s*[-–—]\s*(?:{_MONTH_DATE}|\d{{4}}|present|current)",
    re.I,
)
DEGREE_RE = re.compile(
    r"\b(?:Bachelor|Master|PhD|Associate|Diploma|Certificate|B\.?Tech|M\.?Tech"
    r"|B\.?Sc|M\.?Sc|B\.?A|M\.?A|MBA|BBA|HSC|SSC|12th|10th)\b",
    re.I,
)
GPA_RE = re.compile(r"GPA[:\s]*([\d.]+)", re.I)
INSTITUTION_RE = re.compile(r"university|college|institute|school|hsc|ssc", re.I)
BULLET_RE = re.compile(r"^[•\-*]\s")
NAME_RE = re.compile(r"^[A-Z][a-z]+\s[A-Z][a-z]+")
NAME_REJECT_RE = re.compile(r"\d|@|\.com")
ITEM_SPLIT_RE = re.compile(r"[,;]")

SKILL_CATEGORIES: dict[str, frozenset[str]] = {
    "languages": frozenset(
        {
            "java",
            "python",
            "javascript",
            "typescript",
            "c++",
            "c#",
            "php",
            "ruby",
            "go",
            "rust",
            "swift",
            "kotlin",
            "scala",
            "r",
            "matlab",
            "sql",
            "html",
            "css",
        }
    ),
    "frameworks": frozenset(
        {
            "react",
            "angular",
            "vue",
            "node.js",
            "express",
            "django",
            "flask",
            "spring",
            "laravel",
            "rails",
            "asp.net",
            "fastapi",
            "nextjs",
            "nuxtjs",
        }
    ),
    "databases": frozenset(
        {
            "mysql",
            "postgresql",
            "mongodb",
            "redis",
            "sqlite",
            "oracle",
            "sql server",
            "cassandra",
            "dynamodb",
        }
    ),
    "tools": frozenset(
        {
            "git",
            "docker",
            "kubernetes",
            "jenkins",
            "travis",
            "circleci",
            "aws",
            "azure",
            "gcp",
            "heroku",
            "vercel",
            "netlify",
        }
    ),
    "libraries": frozenset(
        {
            "pandas",
            "numpy",
            "matplotlib",
            "opencv",
            "tensorflow",
            "pytorch",
            "scikit-learn",
            "jquery",
            "bootstrap",
            "material-ui",
        }
    ),
}
SKILL_KEYS = (*SKILL_CATEGORIES, "other")


def parse(
    text: str,
    latinize: bool = False,
    skill_categories: dict[str, frozenset[str]] | None = None,
) -> dict:
    try:
        lines = split_lines(normalize_text(text or "", latinize=latinize))
        logger.debug("Reconstructed %d logical lines", len(lines))
        record = new_record()
        record["name"], record["contact"] = parse_header(lines[:HEADER_WINDOW])
        parsers = section_parsers(skill_categories)
        for section, block in split_sections(lines):
            logger.debug("Section %s: %d line(s)", section, len(block))
            merge_section(record, section, parsers[section](block))
        return post_process(record)
    except Exception as exc:
        raise ParseError(f"Failed to parse resume: {exc}") from exc


def parse_pdf(source: str | Path | bytes, **options) -> dict:
    return parse(extract_text(source), **options)


async def parse_pdf_async(source: str | Path | bytes, **options) -> dict:
    text = await extract_text_async(source)
    return parse(text, **options)


def new_record() -> dict:
    return {
        "name": "",
        "contact": {channel: "" for channel in CONTACT_PATTERNS},
        "profile": "",
        "education": [],
        "experience": [],
        "projects": [],
        "skills": None,
        "achievements": [],
        "languages": [],
        "interests": [],
    }


# ----- text cleanup -----


def normalize_text(text: str, latinize: bool = False) -> str:
    if latinize:
        text = unidecode(text)
    text = re.sub(r"[^\x00-\x7f]", " ", text)
    text = re.sub(r"\s*\n\s*", "\n", text)
    text = re.sub(r"[^\S\n]{2,}", " ", text)
    text = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    return text.strip()


def split_lines(text: str) -> list[str]:
    raw_lines = [line.strip() for line in text.split("\n") if line.strip()]
    merged: list[str] = []
    buffer = ""
    for line in raw_lines:
        if should_merge(buffer, line):
            buffer = f"{buffer} {line}"
        else:
            if buffer:
                merged.append(buffer.strip())
            buffer = line
    if buffer:
        merged.append(buffer.strip())
    return merged


def should_merge(buffer: str, line: str) -> bool:
    if not buffer:
        return False
    if is_section_header(line) or is_section_header(buffer):
        return False
    if DATE_RANGE_RE.search(line):
        return False
    if is_bullet(line) or is_bullet(buffer):
        return False
    return len(buffer) < MERGE_THRESHOLD and not EMAIL_RE.search(buffer)


def is_bullet(line: str) -> bool:
    return bool(BULLET_RE.match(line))


def strip_bullet(line: str) -> str:
    return BULLET_RE.sub("", line, count=1).strip()


def split_items(text: str) -> list[str]:
    return [item.strip() for item in ITEM_SPLIT_RE.split(text) if item.strip()]


# ----- header + contact -----


def parse_header(lines: list[str]) -> tuple[str, dict[str, str]]:
    name = ""
    for line in lines[:NAME_WINDOW]:
        if is_likely_name(line):
            name = line
            break
    contact = {channel: "" for channel in CONTACT_PATTERNS}
    for line in lines:
        extract_contact(line, contact)
    return name, contact


def is_likely_name(line: str) -> bool:
    if len(line.split()) > 5 or NAME_REJECT_RE.search(line):
        return False
    return bool(NAME_RE.match(line))


def extract_contact(line: str, contact: dict[str, str]) -> None:
    for channel, pattern in CONTACT_PATTERNS.items():
        if contact.get(channel):
            continue
        match = pattern.search(line)
        if match:
            contact[channel] = match.group(0)


# ----- section detection -----


def detect_section(line: str) -> str | None:
    normalized = re.sub(r"[^a-z\s]", "", line.lower()).strip()
    for section, pattern in SECTION_PATTERNS.items():
        if pattern.match(normalized):
            return section
    return None


def is_section_header(line: str) -> bool:
    return detect_section(line) is not None


def split_sections(lines: list[str]) -> list[tuple[str, list[str]]]:
    blocks: list[tuple[str, list[str]]] = []
    current: list[str] | None = None
    for line in lines:
        section = detect_section(line)
        if section:
            current = []
            blocks.append((section, current))
        elif current is not None:
            current.append(line)
    return blocks


def section_parsers(
    skill_categories: dict[str, frozenset[str]] | None = None,
) -> dict[str, Callable[[list[str]], object]]:
    if skill_categories is None:
        return SECTION_PARSERS
    return {**SECTION_PARSERS, "skills": partial(parse_skills, categories=skill_categories)}


def merge_section(record: dict, section: str, result) -> None:
    if section == "contact":
        for channel, value in result.items():
            if value and not record["contact"].get(channel):
                record["contact"][channel] = value
    elif section == "profile":
        record["profile"] = " ".join(part for part in (record["profile"], result) if part)
    elif section == "skills":
        record["skills"] = merge_skills(record["skills"], result)
    else:
        record[section].extend(result)


# ----- section parsers -----


def parse_contact_section(lines: list[str]) -> dict[str, str]:
    contact = {channel: "" for channel in CONTACT_PATTERNS}
    for line in lines:
        extract_contact(line, contact)
    return contact


def parse_profile(lines: list[str]) -> str:
    return " ".join(lines).strip()


def new_education_entry(institution: str = "") -> dict:
    return {"institution": institution, "degree": "", "duration": "", "gpa": ""}


def parse_education(lines: list[str]) -> list[dict]:
    entries: list[dict] = []
    current: dict | None = None
    for line in lines:
        duration = DATE_RANGE_RE.search(line)
        starts_entry = bool(INSTITUTION_RE.search(line)) or bool(
            duration and (current is None or current["duration"])
        )
        if starts_entry:
            if current and any(current.values()):
                entries.append(current)
            current = new_education_entry(line)
        degree = DEGREE_RE.search(line)
        gpa = GPA_RE.search(line)
        if current is None and (degree or gpa):
            current = new_education_entry()
        if degree:
            current["degree"] = degree.group(0)
        if duration:
            current["duration"] = duration.group(0)
        if gpa:
            current["gpa"] = gpa.group(1)
    if current and any(current.values()):
        entries.append(current)
    return entries


def new_experience_entry(duration: str = "") -> dict:
    return {"title": "", "company": "", "duration": duration, "responsibilities": []}


def parse_experience(lines: list[str]) -> list[dict]:
    entries: list[dict] = []
    current = new_experience_entry()
    for line in lines:
        match = DATE_RANGE_RE.search(line)
        if match:
            if current["title"]:
                entries.append(current)
            current = new_experience_entry(match.group(0))
            before, after = line[: match.start()], line[match.end() :]
            if "@" in after:
                title, _, company = after.partition("@")
                current["title"] = title.strip()
                current["company"] = company.strip()
            else:
                current["title"] = before.strip()
        elif is_bullet(line):
            current["responsibilities"].append(strip_bullet(line))
    if current["title"]:
        entries.append(current)
    return entries


def new_project(name: str = "") -> dict:
    return {"name": name, "technologies": [], "description": [], "links": []}


def parse_projects(lines: list[str]) -> list[dict]:
    projects: list[dict] = []
    current = new_project()
    for line in lines:
        if "|" in line or DATE_RANGE_RE.search(line):
            if current["name"]:
                projects.append(current)
            name, separator, rest = line.partition("|")
            current = new_project(name.strip())
            if separator:
                current["technologies"] = split_items(rest)
            links = find_all(GITHUB_RE, line) or find_all(PORTFOLIO_RE, line)
            current["links"].extend(links)
        elif is_bullet(line):
            current["description"].append(strip_bullet(line))
    if current["name"]:
        projects.append(current)
    return projects


def find_all(pattern: re.Pattern[str], text: str) -> list[str]:
    return [match.group(0) for match in pattern.finditer(text)]


def parse_skills(
    lines: list[str], categories: dict[str, frozenset[str]] | None = None
) -> dict[str, list[str]]:
    categories = categories or SKILL_CATEGORIES
    skills: dict[str, list[str]] = {key: [] for key in SKILL_KEYS}
    for line in lines:
        _, colon, rest = line.partition(":")
        for item in split_items(rest if colon else line):
            skills[categorize_skill(item, categories)].append(item)
    return {key: dedupe_casefold(values) for key, values in skills.items()}


def categorize_skill(skill: str, categories: dict[str, frozenset[str]] | None = None) -> str:
    lowered = skill.lower()
    for category, terms in (categories or SKILL_CATEGORIES).items():
        if lowered in terms:
            return category
    return "other"


def dedupe_casefold(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(value.lower() for value in values))


def merge_skills(
    current: dict[str, list[str]] | None, extra: dict[str, list[str]]
) -> dict[str, list[str]]:
    if current is None:
        return extra
    return {key: dedupe_casefold(current.get(key, []) + extra.get(key, [])) for key in SKILL_KEYS}


def load_skill_table(overrides: dict[str, Iterable[str]]) -> dict[str, frozenset[str]]:
    table = dict(SKILL_CATEGORIES)
    for category, keywords in overrides.items():
        if category not in table:
            logger.warning("Ignoring unknown skill category %r", category)
            continue
        if isinstance(keywords, str):
            keywords = [keywords]
        elif not isinstance(keywords, list):
            raise ValueError(f"skill table entry {category!r} must be a list of strings")
        table[category] = table[category] | {str(word).strip().lower() for word in keywords}
    return table


def parse_achievements(lines: list[str]) -> list[str]:
    return [item for item in (strip_bullet(line) for line in lines) if item]


def parse_languages(lines: list[str]) -> list[str]:
    return flatten_unique(lines)


def parse_interests(lines: list[str]) -> list[str]:
    return flatten_unique(lines)


def flatten_unique(lines: list[str]) -> list[str]:
    return list(dict.fromkeys(item for line in lines for item in split_items(line)))


SECTION_PARSERS: dict[str, Callable[[list[str]], object]] = {
    "contact": parse_contact_section,
    "profile": parse_profile,
    "education": parse_education,
    "experience": parse_experience,
    "projects": parse_projects,
    "skills": parse_skills,
    "achievements": parse_achievements,
    "languages": parse_languages,
    "interests": parse_interests,
}


# ----- cleanup -----


def post_process(record: dict) -> dict:
    result: dict = {"name": record.get("name") or DEFAULT_NAME}
    contact = {channel: value for channel, value in (record.get("contact") or {}).items() if value}
    if contact:
        result["contact"] = contact
    for key in RECORD_KEYS[2:]:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, (list, str)) and not value:
            continue
        if key == "skills":
            value = {category: list(value.get(category, [])) for category in SKILL_KEYS}
        result[key] = value
    return result
