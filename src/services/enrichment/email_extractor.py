import json
import re
from urllib.parse import unquote

from bs4 import BeautifulSoup

from common.logging import get_logger

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Text and entity obfuscations, applied in order before pattern matching
OBFUSCATIONS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\s*\[at\]\s*", re.IGNORECASE), "@"),
    (re.compile(r"\s*\(at\)\s*", re.IGNORECASE), "@"),
    (re.compile(r"\s*\[dot\]\s*", re.IGNORECASE), "."),
    (re.compile(r"\s*\(dot\)\s*", re.IGNORECASE), "."),
    (re.compile(r" at ", re.IGNORECASE), "@"),
    (re.compile(r" dot ", re.IGNORECASE), "."),
    (re.compile(r"&#0*64;"), "@"),
    (re.compile(r"&#0*46;"), "."),
    (re.compile(r"&commat;"), "@"),
    (re.compile(r"&period;"), "."),
    (re.compile(r"&#x0*40;", re.IGNORECASE), "@"),
    (re.compile(r"&#x0*2e;", re.IGNORECASE), "."),
]

# Role/system mailboxes that are useless for outreach
EXCLUDED_LOCAL_PATTERNS = [
    "abuse@",
    "hostmaster@",
    "postmaster@",
    "webmaster@",
    "noreply@",
    "no-reply@",
    "mailer-daemon@",
    "support@",
]

# Domains that show up in page source without being anyone's contact address
EXCLUDED_DOMAINS = ["sentry.io", "schema.org", "w3.org", "example.com", "test.com"]

# Filenames like "logo@2x.png" caught by the pattern in CSS/JS blobs
EXCLUDED_SUFFIXES = (".png", ".jpg", ".jpeg", ".svg", ".gif", ".webp")

# First match wins
PRIORITY_EMAIL_PREFIXES = [
    "affiliate@",
    "partner@",
    "partnerships@",
    "marketing@",
    "press@",
    "kontakt@",  # de
    "contact@",  # en
    "contacto@",  # es
    "contato@",  # pt
    "contatti@",  # it
    "info@",
    "hello@",
    "office@",
    "team@",
]

MIN_EMAIL_LENGTH = 5
MAX_EMAIL_LENGTH = 100


def is_valid_email(email: str) -> bool:
    """True when the address looks real and is useful for outreach."""
    if "@" not in email:
        return False
    _, _, domain = email.partition("@")
    if "." not in domain:
        return False
    if not MIN_EMAIL_LENGTH <= len(email) <= MAX_EMAIL_LENGTH:
        return False

    lowered = email.lower()
    if any(pattern in lowered for pattern in EXCLUDED_LOCAL_PATTERNS):
        return False
    # "@example.com" also rejects "jane@example.com.au"; subdomains like "x.ingest.sentry.io" too
    domain = domain.lower()
    if any(f"@{d}" in lowered or domain.endswith(f".{d}") for d in EXCLUDED_DOMAINS):
        return False
    if lowered.endswith(EXCLUDED_SUFFIXES):
        return False
    return True


def _matches_domain(email: str, domain: str) -> bool:
    email_domain = email.partition("@")[2].lower()
    if not email_domain or not domain:
        return False
    bare = domain.lower().removeprefix("www.")
    return (
        email_domain == bare
        or email_domain == f"www.{bare}"
        or email_domain in bare
        or bare in email_domain
    )


def select_best_email(emails: list[str], domain: str) -> str | None:
    """
    Pick the primary address from a list of candidates.

    Order of preference:
        1. Addresses on the searched domain (the rest are ignored if any match)
        2. The first address with a priority prefix (affiliate@, partner@, ... team@)
        3. The first address in discovery order
    """
    if not emails:
        return None
    if len(emails) == 1:
        return emails[0]

    same_domain = [e for e in emails if _matches_domain(e, domain)]
    candidates = same_domain or emails

    for prefix in PRIORITY_EMAIL_PREFIXES:
        for email in candidates:
            if email.lower().startswith(prefix):
                return email

    return candidates[0]


class EmailExtractor:
    """Extracts candidate email addresses from raw HTML using several techniques.

    Example:
        extractor = EmailExtractor()
        emails = extractor.extract_all(html)            # all five techniques, filtered
        emails = extractor.extract_structured(html)     # mailto/JSON-LD/meta only
    """

    def extract_all(self, html: str) -> list[str]:
        """Union of every technique, deduplicated in discovery order and filtered."""
        soup = BeautifulSoup(html, "html.parser")
        found: dict[str, None] = {}
        for batch in (
            self.extract_with_regex(self.deobfuscate(html)),
            self.extract_from_mailto_links(html, soup),
            self.extract_from_json_ld(html, soup),
            self.extract_from_meta_tags(html, soup),
        ):
            found.update(dict.fromkeys(batch))
        return [e for e in found if is_valid_email(e)]

    def extract_structured(self, html: str) -> list[str]:
        """Homepage variant: structured data, meta tags and mailto links, no raw pattern match."""
        soup = BeautifulSoup(html, "html.parser")
        found: dict[str, None] = {}
        for batch in (
            self.extract_from_json_ld(html, soup),
            self.extract_from_meta_tags(html, soup),
            self.extract_from_mailto_links(html, soup),
        ):
            found.update(dict.fromkeys(batch))
        return [e for e in found if is_valid_email(e)]

    def deobfuscate(self, text: str) -> str:
        """Rewrite "name [at] domain [dot] com" and entity-encoded forms to literal addresses."""
        for pattern, replacement in OBFUSCATIONS:
            text = pattern.sub(replacement, text)
        return text

    def extract_with_regex(self, text: str) -> list[str]:
        return list(dict.fromkeys(m.lower() for m in EMAIL_RE.findall(text)))

    def extract_from_mailto_links(self, html: str, soup: BeautifulSoup | None = None) -> list[str]:
        """Addresses from href="mailto:..." attributes, without ?subject= style parameters."""
        if not soup:
            soup = BeautifulSoup(html, "html.parser")

        emails: list[str] = []
        for tag in soup.find_all(href=True):
            href = str(tag["href"]).strip()
            if not href.lower().startswith("mailto:"):
                continue
            email = self._clean_candidate(unquote(href[len("mailto:") :].split("?")[0]))
            if email:
                emails.append(email)
        return emails

    def extract_from_json_ld(self, html: str, soup: BeautifulSoup | None = None) -> list[str]:
        """Values of any *email* key inside <script type="application/ld+json"> blocks."""
        if not soup:
            soup = BeautifulSoup(html, "html.parser")

        emails: list[str] = []
        for script in soup.find_all("script", attrs={"type": re.compile(r"application/ld\+json", re.IGNORECASE)}):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("Skipping malformed JSON-LD block")
                continue
            self._find_emails_in_object(data, emails)
        return emails

    def extract_from_meta_tags(self, html: str, soup: BeautifulSoup | None = None) -> list[str]:
        """<meta name="author" content="..."> and <link rel="me" href="mailto:...">."""
        if not soup:
            soup = BeautifulSoup(html, "html.parser")

        emails: list[str] = []
        for meta in soup.find_all("meta", attrs={"name": re.compile(r"^author$", re.IGNORECASE)}):
            content = str(meta.get("content") or "")
            if "@" in content:
                emails.extend(m.lower() for m in EMAIL_RE.findall(content))

        for link in soup.find_all("link", rel="me"):
            href = str(link.get("href") or "").strip()
            if href.lower().startswith("mailto:"):
                email = self._clean_candidate(unquote(href[len("mailto:") :].split("?")[0]))
                if email:
                    emails.append(email)
        return emails

    def _find_emails_in_object(self, obj, emails: list[str]) -> None:
        if isinstance(obj, list):
            for item in obj:
                self._find_emails_in_object(item, emails)
            return
        if not isinstance(obj, dict):
            return

        for key, value in obj.items():
            if isinstance(value, str) and "email" in str(key).lower():
                email = self._clean_candidate(re.sub(r"^mailto:", "", value.strip(), flags=re.IGNORECASE))
                if email:
                    emails.append(email)
            elif isinstance(value, (dict, list)):
                self._find_emails_in_object(value, emails)

    @staticmethod
    def _clean_candidate(value: str) -> str | None:
        email = value.strip().lower()
        return email if "@" in email else None
