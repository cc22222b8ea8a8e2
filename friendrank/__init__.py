"""Rank films by consensus across the people you follow on Letterboxd.

Crawls the rated-film lists of a friend set concurrently, merges every
rating per film, and ranks the films by score and number of ratings.

Key modules:
    client      -- FetchClient: one page, fixed retries, parsed document
    crawler     -- PaginationCrawler following "next" links
    scrapers    -- platform extractors, LetterboxdScraper, IdentityResolver
    controller  -- AdmissionController bounding concurrent crawls
    collector   -- BoundedCollector fanning per-user crawls into one stream
    strategies  -- ScoringStrategy and the mean/least-square/weighted scores
    aggregation -- merge observations into groups and score them
    ranking     -- threshold filter and ordering
    session     -- RankingSession interactive state machine
    storage     -- CSV and JSONL exports
    factory     -- ClientFactory for requests/curl_cffi transports
    metrics     -- FetchMetrics for fetch statistics
    models      -- Observation, ItemGroup, ScoredItem, PageResult, ...
"""
