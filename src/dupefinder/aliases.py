from dupefinder.core.models import HashTier

TIER_ALIASES = {
    "size": HashTier.SIZE,
    "quick": HashTier.QUICK,
    "full": HashTier.FULL,
}

TIER_CHOICES = list(TIER_ALIASES.keys())

TIER_HELP_TEXT = (
    "Hash tier used for grouping (depth of analysis):\n"
    + "".join(f"  {alias:<10} : {tier.description}\n" for alias, tier in TIER_ALIASES.items())
    + "Each tier is only computed for files still matching on every earlier tier.\n"
    "Default: full\n"
    "Example:\n"
    "  %(prog)s -i ~/Downloads --tier quick -m 500K"
)

EPILOG_TEXT = """
Examples:
  Basic usage - find duplicates in Downloads folder
  %(prog)s -i ~/Downloads

  Filter files by size and extensions and find duplicates
  %(prog)s -i ~/Downloads -m 500KB -M 10MB -x .jpg .png

  Show every file, including the ones with no duplicate
  %(prog)s -i ~/Downloads --include-singletons

  Give up after 5 minutes of hashing, using 4 hashing threads
  %(prog)s -i /mnt/archive --timeout 300 --workers 4
"""
