import re

# Minimum length required for a valid password
PASSWORD_MIN_LENGTH = 8

# Alphanumeric characters, underscore, dash, and dot
# Example: "john.doe_2023"
USERNAME_VALIDATOR = re.compile(r"^[a-zA-Z0-9_\-.]{3,60}$")
