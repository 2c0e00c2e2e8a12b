"""
Services for claude-teleport-analyzer.

- credentials: access token / organization resolution and client construction
- fetch: cursor-paginated event fetch engine
- query: local filters over fetched events
- directory: session list/show/loglines
- summary, export: derived views of a fetched transcript
"""
