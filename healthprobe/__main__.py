"""Allow ``python -m healthprobe <url>``."""

from healthprobe.main import main

if __name__ == "__main__":
    main()
