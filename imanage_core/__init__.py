"""Core of the iManage research connector.

This package holds everything both servers share: the token cache, the
upstream query executor, search strategy dispatch, batch orchestration
and the projections onto the outbound response shapes.

Architecture::

    REST (server/app.py) ─┐
                          ├──► ImanageConnector
    MCP (connector/)     ─┘         │
                                    ▼
                            SearchDispatcher ──► BatchOrchestrator
                                    │                  │
                                    ▼                  ▼
                            DocumentRepository ◄───────┘
                                    │
                                    ├──► CredentialCache ──► /oauth2/token
                                    ▼
                              iManage Work API
"""
