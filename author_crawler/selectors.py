"""Selector candidates and in-page scripts.

Each tuple is tried in order; the first candidate that yields a non-empty
value wins. Several generations of the site's markup are covered, newest
first.
"""

# Author profile

AUTHOR_READY = (
    'h1[data-testid="authorName"]',
    'h2.pw-author-name',
    'div[data-testid="authorPage"]',
)

ARTICLE_LIST_READY = (
    "article",
    'div[data-testid="postPreview"]',
    'main[data-testid="mainContent"]',
)

AUTHOR_NAME = (
    'h1[data-testid="authorName"]',
    'h2.pw-author-name',
    'h1[data-testid="publicationName"]',
    'meta[property="profile:username"]',
    "main h1",
    "main h2",
)

AUTHOR_BIO = (
    'p[data-testid="authorBio"]',
    'div[data-testid="authorBio"]',
    'p.pw-author-bio',
    'div[data-testid="publicationDescription"]',
)

AUTHOR_AVATAR = (
    'img[data-testid="authorImage"]',
    'img[data-testid="authorPhoto"]',
    'img[data-testid="publicationImage"]',
    'main img[alt]',
)

AUTHOR_FOLLOWERS = (
    'a[data-testid="followersLink"]',
    'button[data-testid="followersCount"]',
    'span.pw-follower-count',
    'a[href$="/followers"]',
)

AUTHOR_FOLLOWING = (
    'a[data-testid="followingLink"]',
    'button[data-testid="followingCount"]',
    'a[href$="/following"]',
)

AUTHOR_SOCIAL_LINKS = (
    'div[data-testid="authorSocialLinks"] a[href]',
    'a[rel~="me"][href]',
    'a[href*="twitter.com"], a[href*="x.com"], a[href*="linkedin.com"], a[href*="github.com"]',
)

AUTHOR_PUBLICATIONS = (
    'div[data-testid="authorPublications"] a[href]',
    'a[data-testid="publicationLink"]',
)

PUBLICATION_ROLE = (
    'span[data-testid="publicationRole"]',
    "span",
)

# Article cards on the profile list

ARTICLE_CARDS = (
    'article[data-testid="postPreview"]',
    "article",
    'div[data-testid="postPreview"]',
    'div[data-testid*="post"]',
)

SUMMARY_TITLE = (
    'h2[data-testid="articleTitle"]',
    "h2",
    "h3",
    "h1",
    '[data-testid*="title"]',
    ".pw-post-title",
)

SUMMARY_SUBTITLE = (
    'h3[data-testid="articleSubtitle"]',
    'p[data-testid="articleSubtitle"]',
    ".pw-subtitle-paragraph",
    "p",
)

SUMMARY_DATE = (
    "time",
    'span[data-testid="publishDate"]',
    '[data-testid*="date"]',
)

SUMMARY_READ_TIME = (
    'span[data-testid="readingTime"]',
    'span[data-testid="readTime"]',
    '[data-testid*="read"]',
)

SUMMARY_CLAPS = (
    'div[data-testid="clapCount"]',
    'button[data-testid="clapButton"]',
    'span[data-testid="clapCount"]',
)

SUMMARY_RESPONSES = (
    'a[data-testid="responsesLink"]',
    'button[data-testid="responsesButton"]',
    'span[data-testid="responseCount"]',
)

SUMMARY_TAGS = (
    'a[data-testid="tagLink"]',
    'a[href*="/tag/"]',
)

PREMIUM_BADGE = (
    'span[data-testid="memberOnlyBadge"]',
    'div[data-testid="premiumBadge"]',
    'svg[aria-label="Member-only story"]',
    'button[aria-label="Member-only story"]',
)

LOAD_MORE = (
    'button[data-testid="loadMore"]',
    'button:has-text("Show more")',
    'button:has-text("Load more")',
)

# Article page

ARTICLE_READY = (
    'h1[data-testid="storyTitle"]',
    "article h1",
    'div[data-testid="articleBody"]',
)

ARTICLE_TITLE = (
    'h1[data-testid="storyTitle"]',
    'h1.pw-post-title',
    "article h1",
    "h1",
    'meta[property="og:title"]',
)

ARTICLE_SUBTITLE = (
    'h2.pw-subtitle-paragraph',
    'h2[data-testid="articleSubtitle"]',
    'p[data-testid="articleSubtitle"]',
    'meta[name="description"]',
)

ARTICLE_AUTHOR = (
    'a[data-testid="authorName"]',
    'a[rel="author"]',
    'a[href*="/@"][data-testid]',
    'meta[name="author"]',
)

ARTICLE_DATE = (
    'span[data-testid="storyPublishDate"]',
    'time[data-testid="articleDate"]',
    'span[data-testid="publishDate"]',
    "article time",
    'meta[property="article:published_time"]',
)

ARTICLE_READ_TIME = (
    'span[data-testid="storyReadTime"]',
    'span[data-testid="readingTime"]',
    'span[data-testid="readTime"]',
)

ARTICLE_CLAPS = (
    'div[data-testid="headerClapButton"] p',
    'div[data-testid="clapCount"]',
    'button[data-testid="clapButton"]',
)

ARTICLE_RESPONSES = (
    'button[data-testid="headerResponseButton"] p',
    'a[data-testid="responsesLink"]',
    'button[data-testid="responsesButton"]',
)

ARTICLE_TAGS = (
    'a[data-testid="tagLink"]',
    'div[data-testid="articleTags"] a',
    'a[href*="/tag/"]',
)

ARTICLE_PUBLICATION = (
    'a[data-testid="publicationName"]',
    'div[data-testid="publicationTitle"] a',
)

ARTICLE_MAIN_IMAGE = (
    'figure img[src]',
    'article img[src]',
    'meta[property="og:image"]',
)

ARTICLE_SERIES_NAME = (
    'a[data-testid="seriesName"]',
    'div[data-testid="seriesTitle"] a',
)

ARTICLE_SERIES_PART = (
    'span[data-testid="seriesPart"]',
)

ARTICLE_BODY = (
    'div[data-testid="articleBody"]',
    'article div[data-testid="articleContent"]',
    "article section",
    "article",
    "main",
)

# Comments

COMMENTS_SECTION = (
    'div[data-testid="commentsSection"]',
    'section[data-testid="responses"]',
    'div[role="dialog"][aria-label*="Responses"]',
)

COMMENT = (
    'div[data-testid="comment"]',
    'article[data-testid="response"]',
    'pre.comment',
)

COMMENT_AUTHOR = (
    'a[data-testid="commentAuthor"]',
    'a[href*="/@"]',
)

COMMENT_CONTENT = (
    'div[data-testid="commentContent"]',
    'pre',
    "p",
)

COMMENT_DATE = (
    'span[data-testid="commentDate"]',
    "time",
)

COMMENT_CLAPS = (
    'div[data-testid="commentClaps"]',
    'button[data-testid="clapButton"]',
)

# Publication details

PUBLICATION_LOGO = (
    'img[data-testid="publicationLogo"]',
    'div[data-testid="publicationImage"] img',
)

PUBLICATION_DESCRIPTION = (
    'p[data-testid="publicationDescription"]',
    'div[data-testid="publicationDescription"]',
)

PUBLICATION_FOLLOWERS = (
    'span[data-testid="publicationFollowers"]',
    'a[href$="/followers"]',
)

# Paywall signals, queried against the live page

PAYWALL_PREMIUM = (
    'div[data-testid="paywall"]',
    'div[data-testid="premiumContent"]',
    'div[data-testid="premiumBadge"]',
    'span:has-text("Premium")',
)

PAYWALL_MEMBER_ONLY = (
    'span[data-testid="memberOnlyBadge"]',
    'span:has-text("Member-only story")',
    'div:has-text("This story is for Medium members only")',
    'button:has-text("Upgrade to Medium membership")',
)

PAYWALL_SUBSCRIPTION = (
    'div[data-testid="subscriptionPrompt"]',
    'div[data-testid="paywallPrompt"]',
    'button[data-testid="continueReading"]',
    'a[data-testid="continueReading"]',
    'button:has-text("Continue reading")',
)

PAYWALL_LOGIN = (
    'div:has-text("Sign in to continue")',
    'div:has-text("Login to continue")',
    'button:has-text("Sign in to read")',
)

PAYWALL_DISMISS = (
    'button[data-testid="closeButton"]',
    '[data-testid="dismiss"]',
    'button[aria-label="close"]',
    'button:has-text("No thanks")',
    'button:has-text("Maybe later")',
)

# In-page scripts

SCROLL_HEIGHT_JS = "() => document.documentElement.scrollHeight"

VIEWPORT_HEIGHT_JS = "() => window.innerHeight"

SCROLL_TO_JS = "(y) => window.scrollTo(0, y)"

SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.documentElement.scrollHeight)"

MAIN_TEXT_LENGTH_JS = """() => {
    const el = document.querySelector('article, main, [data-testid="articleBody"]');
    return el ? el.textContent.length : 0;
}"""

PARTIAL_CONTENT_JS = """() => {
    const candidates = ['article p', 'article h1, article h2, article h3', 'main p',
                        '[data-testid="articleBody"] p'];
    for (const selector of candidates) {
        const nodes = document.querySelectorAll(selector);
        if (nodes.length > 0) {
            const text = Array.from(nodes)
                .map(n => n.textContent.trim())
                .filter(t => t.length > 10)
                .join('\\n\\n');
            return text.length > 50 ? text : null;
        }
    }
    return null;
}"""

ACCESSIBLE_CONTENT_JS = """() => {
    const candidates = [
        'article div[data-testid="articleBody"] > *:not([data-testid="paywall"])',
        'article > *:not([data-testid="paywall"])',
        'main > *:not([data-testid="paywall"])',
    ];
    for (const selector of candidates) {
        const nodes = document.querySelectorAll(selector);
        if (nodes.length > 0) {
            return Array.from(nodes).map(n => n.textContent).join('\\n');
        }
    }
    return null;
}"""

STEALTH_INIT_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = window.chrome || { runtime: {} };
"""
