"""MCP surface of the iManage research connector.

The orchestration client talks to this server over the Model Context
Protocol.  It exposes exactly the two standardized tools also described
by ``GET /tools`` on the REST server:

Tools:
    search  – title, keyword, advanced-filter or combined batch search
    fetch   – document metadata plus optional base64 content
"""
