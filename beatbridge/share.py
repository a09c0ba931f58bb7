"""Entry: share intake from another process (share sheet stand-in)."""
import argparse
import logging
import sys

from beatbridge.config import MAILBOX_PATH, ensure_data_dir
from beatbridge.core.mailbox import ShareMailbox
from beatbridge.core.share_intake import NoLinkInSharedContent, ShareIntake
from beatbridge.models.contact import PendingContactSelection


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Hand a shared music link to Beat Bridge")
    parser.add_argument("content", nargs="+", help="shared URL or text containing one")
    parser.add_argument("--contact", metavar="ID", help="identifier of a contact already picked")
    parser.add_argument("--name", help="display name of that contact")
    parser.add_argument("--phone", help="phone number of that contact")
    args = parser.parse_args(argv)
    if bool(args.contact) != bool(args.name):
        parser.error("--contact and --name go together")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    ensure_data_dir()
    contact = None
    if args.contact:
        contact = PendingContactSelection(
            contact_identifier=args.contact,
            contact_name=args.name,
            phone=args.phone or None,
        )
    intake = ShareIntake(ShareMailbox(MAILBOX_PATH))
    try:
        share = intake.capture(" ".join(args.content), contact=contact)
    except NoLinkInSharedContent as e:
        logging.getLogger(__name__).error("%s", e)
        return 1
    print(f"Music link ready: {share.source_link}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
