"""External data sources: The Odds API, Polymarket, Firecrawl."""
