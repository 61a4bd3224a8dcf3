from pathlib import Path
import sys

from dotenv import dotenv_values


def check_env_file(example_path: str = ".env.example", env_path: str = ".env") -> None:
    """
    Checks that every key of the example env file is set in the real one.
    """
    if not Path(example_path).exists() or not Path(env_path).exists():
        print(f"File not found: {example_path if not Path(example_path).exists() else env_path}")
        raise SystemExit(1)

    required_keys = set(dotenv_values(example_path))
    actual = dotenv_values(env_path)
    missing_keys = sorted(required_keys - set(actual))
    if missing_keys:
        print(f"Missing keys in {env_path}: {', '.join(missing_keys)}")
        raise SystemExit(1)

    print(f"All required keys are present in {env_path}.")


if __name__ == "__main__":
    check_env_file(*sys.argv[1:3])
