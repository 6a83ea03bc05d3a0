"""FastAPI server for the iManage research connector."""
