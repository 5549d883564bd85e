pytest_plugins = ["auth_e2e.plugin", "pytester"]
