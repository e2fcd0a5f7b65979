from scriptfilter.integrations.wiki import WIKI_FLOW, WikiSearchClient, format_wiki_error, make_wiki_fetch

__all__ = [
    "WIKI_FLOW",
    "WikiSearchClient",
    "format_wiki_error",
    "make_wiki_fetch",
]
