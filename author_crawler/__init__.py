"""Single-author crawler package.

Crawls one author's profile on a publishing site, discovers their articles
and extracts structured article data under a request budget.

Key modules:
    orchestrator -- CrawlOrchestrator: queue, dispatch, retry, rotation, stats
    classifier   -- URL to author/article/unknown
    author       -- AuthorExtractor and filter_articles
    article      -- ArticleExtractor (embedded state first, DOM fallback)
    state_graph  -- StateGraph arena over the embedded client state
    dom          -- DOM fallback parsing with BeautifulSoup
    paywall      -- PaywallDetector detect/handle
    rotation     -- RotationManager over proxy/user-agent identities
    proxies      -- proxy list loading and health probes
    rate_limiter -- token-bucket RateLimiter
    backoff      -- BackoffStrategy for exponential retry delays
    retry        -- RetryPolicy and with_retry
    session      -- Playwright BrowserSession
    storage      -- ResultStore and JsonlStorage
    metrics      -- RunStats
    config       -- CrawlOptions and CrawlSettings
    models       -- records and content blocks
"""
