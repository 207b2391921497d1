"""Print a fresh participant key set as .env lines (ondc-keygen)."""

from .keys import generate_key_material


def main() -> None:
    for name, value in generate_key_material().items():
        print(f"{name}={value}")


if __name__ == "__main__":
    main()
