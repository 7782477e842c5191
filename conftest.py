"""Root conftest — runs before any test module imports."""

import os

# Rich honours FORCE_COLOR even when writing to a CliRunner buffer, which
# puts ANSI codes into the CLI output the tests parse as JSON or YAML.
os.environ.pop("FORCE_COLOR", None)
os.environ["NO_COLOR"] = "1"
