from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

AUTHOR = "author"
ARTICLE = "article"
UNKNOWN = "unknown"

PAYWALL_NONE = "none"
PAYWALL_PREMIUM = "premium"
PAYWALL_MEMBER_ONLY = "member_only"
PAYWALL_SUBSCRIPTION_PROMPT = "subscription_prompt"
PAYWALL_LOGIN_REQUIRED = "login_required"
PAYWALL_CONTENT_TRUNCATION = "content_truncation"
PAYWALL_UNKNOWN = "unknown"


@dataclass
class CrawlTask:
    url: str
    kind: str = UNKNOWN
    attempts: int = 0


# Content blocks. Both extraction paths emit these types only.


@dataclass(frozen=True)
class Heading:
    kind: ClassVar[str] = "heading"
    level: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "level": self.level, "text": self.text}


@dataclass(frozen=True)
class Paragraph:
    kind: ClassVar[str] = "paragraph"
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "text": self.text}


@dataclass(frozen=True)
class Quote:
    kind: ClassVar[str] = "quote"
    text: str
    author: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "text": self.text, "author": self.author}


@dataclass(frozen=True)
class Code:
    kind: ClassVar[str] = "code"
    language: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "language": self.language, "text": self.text}


@dataclass(frozen=True)
class Image:
    kind: ClassVar[str] = "image"
    src: str
    alt: str = ""
    caption: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "src": self.src, "alt": self.alt, "caption": self.caption}


@dataclass(frozen=True)
class ListBlock:
    kind: ClassVar[str] = "list"
    list_type: str
    items: tuple

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "listType": self.list_type, "items": list(self.items)}


@dataclass(frozen=True)
class Link:
    kind: ClassVar[str] = "link"
    text: str
    url: str
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "text": self.text, "url": self.url, "title": self.title}


@dataclass(frozen=True)
class UnknownBlock:
    kind: ClassVar[str] = "unknown"
    source_type: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "sourceType": self.source_type, "text": self.text}


ContentBlock = Union[Heading, Paragraph, Quote, Code, Image, ListBlock, Link, UnknownBlock]


def block_text(block: ContentBlock) -> str:
    """Readable text carried by a block; links and images contribute nothing."""
    if isinstance(block, ListBlock):
        return " ".join(block.items)
    if isinstance(block, (Link, Image)):
        return ""
    return block.text


@dataclass(frozen=True)
class ArticleContent:
    blocks: tuple
    text_content: str
    word_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blocks": [b.to_dict() for b in self.blocks],
            "textContent": self.text_content,
            "wordCount": self.word_count,
        }


@dataclass(frozen=True)
class Comment:
    author: str
    author_url: str
    content: str
    date: Optional[str]
    claps: int
    index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "author": self.author,
            "authorUrl": self.author_url,
            "content": self.content,
            "date": self.date,
            "claps": self.claps,
            "index": self.index,
        }


@dataclass(frozen=True)
class Publication:
    name: str = ""
    url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "url": self.url}


@dataclass(frozen=True)
class PublicationDetails:
    name: str
    url: str
    logo: str = ""
    description: str = ""
    followers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "logo": self.logo,
            "description": self.description,
            "followers": self.followers,
        }


@dataclass(frozen=True)
class Series:
    name: str
    url: str = ""
    part: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "url": self.url, "part": self.part}


@dataclass(frozen=True)
class PaywallIndicator:
    type: str
    selector: str = ""
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "selector": self.selector, "detail": self.detail}


@dataclass(frozen=True)
class PaywallResult:
    has_paywall: bool
    type: str
    indicators: tuple
    confidence: float

    @classmethod
    def none(cls) -> "PaywallResult":
        return cls(has_paywall=False, type=PAYWALL_NONE, indicators=(None,) * 5, confidence=0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasPaywall": self.has_paywall,
            "type": self.type,
            "indicators": [i.to_dict() if i is not None else None for i in self.indicators],
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class PaywallOutcome:
    success: bool
    method: str = ""
    content: Optional[str] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "method": self.method}
        if self.content is not None:
            data["content"] = self.content
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class ArticleSummary:
    """One article card read from the author's profile list."""

    url: str
    title: str
    subtitle: str = ""
    date: str = ""
    published_at: Optional[str] = None
    read_time: int = 0
    claps: int = 0
    responses: int = 0
    tags: tuple = ()
    is_premium: bool = False
    index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "subtitle": self.subtitle,
            "date": self.date,
            "publishedAt": self.published_at,
            "readTime": self.read_time,
            "claps": self.claps,
            "responses": self.responses,
            "tags": list(self.tags),
            "isPremium": self.is_premium,
            "index": self.index,
        }


@dataclass(frozen=True)
class AuthorRecord:
    name: str
    bio: str
    username: str
    url: str
    avatar: str = ""
    followers: int = 0
    following: int = 0
    social_links: tuple = ()
    publications: tuple = ()
    article_refs: tuple = ()
    total_discovered: int = 0
    scraped_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "bio": self.bio,
            "username": self.username,
            "url": self.url,
            "avatar": self.avatar,
            "followers": self.followers,
            "following": self.following,
            "socialLinks": [dict(link) for link in self.social_links],
            "publications": [dict(pub) for pub in self.publications],
            "articles": [a.to_dict() for a in self.article_refs],
            "totalArticles": self.total_discovered,
            "filteredCount": len(self.article_refs),
            "scrapedAt": self.scraped_at,
        }


@dataclass(frozen=True)
class ArticleRecord:
    url: str
    title: str
    subtitle: str = ""
    author: str = ""
    author_url: str = ""
    publish_date: Optional[str] = None
    read_time_minutes: int = 0
    claps: int = 0
    responses: int = 0
    tags: tuple = ()
    publication: Publication = field(default_factory=Publication)
    main_image: str = ""
    is_premium: bool = False
    series: Optional[Series] = None
    content: Optional[ArticleContent] = None
    comments: Optional[tuple] = None
    publication_details: Optional[PublicationDetails] = None
    paywall_info: Optional[Dict[str, Any]] = None
    extraction_method: str = ""
    scraped_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "subtitle": self.subtitle,
            "author": self.author,
            "authorUrl": self.author_url,
            "publishDate": self.publish_date,
            "readTimeMinutes": self.read_time_minutes,
            "claps": self.claps,
            "responses": self.responses,
            "tags": list(self.tags),
            "publication": self.publication.to_dict(),
            "mainImage": self.main_image,
            "isPremium": self.is_premium,
            "series": self.series.to_dict() if self.series else None,
            "content": self.content.to_dict() if self.content else None,
            "comments": [c.to_dict() for c in self.comments] if self.comments is not None else None,
            "publicationDetails": self.publication_details.to_dict() if self.publication_details else None,
            "paywallInfo": self.paywall_info,
            "extractionMethod": self.extraction_method,
            "scrapedAt": self.scraped_at,
        }


@dataclass
class Identity:
    proxy_endpoint: Optional[str]
    user_agent: str
    healthy: bool = True

    @property
    def key(self) -> str:
        return f"{self.proxy_endpoint or 'direct'}|{self.user_agent}"

    def to_dict(self) -> Dict[str, Any]:
        return {"proxyEndpoint": self.proxy_endpoint, "userAgent": self.user_agent, "healthy": self.healthy}


@dataclass(frozen=True)
class CrawlResult:
    author: Optional[AuthorRecord]
    articles: List[ArticleRecord]
    stats: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "author": self.author.to_dict() if self.author else None,
            "articles": [a.to_dict() for a in self.articles],
            "stats": dict(self.stats),
        }
