"""HTTP routers mounted by ``todo_api.main.create_app``."""
