pytest_plugins = ["brava_actions.testing.fixtures"]
