from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from clinic.client import ConversationPoller, MessagingClient, MessagingClientError


class Command(BaseCommand):
    help = "Poll the messaging API like the portals do and print new conversations and messages."

    def add_arguments(self, parser):
        parser.add_argument("--base-url", default="http://127.0.0.1:8000")
        parser.add_argument("--token", required=True, help="API token of the polling user")
        parser.add_argument("--conversation", help="conversation id to follow")
        parser.add_argument("--send", help="send this message to the followed conversation first")
        parser.add_argument("--iterations", type=int, default=None, help="stop after N ticks")

    def handle(self, *args, **opts):
        client = MessagingClient(opts["base_url"], opts["token"])
        seen: set = set()

        def show_conversations(items):
            self.stdout.write(f"{len(items)} conversation(s)")
            for c in items:
                label = c.get("id") or "(new)"
                self.stdout.write(f"  {label} {c.get('other_user_name')} unread={c.get('unread_count', 0)}")

        def show_messages(conversation_id, items):
            for m in items:
                if m["id"] in seen:
                    continue
                seen.add(m["id"])
                self.stdout.write(f"[{m['created_at']}] {m['sender_name']}: {m['content']}")

        poller = ConversationPoller(
            client,
            conversations_interval=settings.POLL_CONVERSATIONS_SECONDS,
            messages_interval=settings.POLL_MESSAGES_SECONDS,
            on_conversations=show_conversations,
            on_messages=show_messages,
        )
        if opts["conversation"]:
            poller.select(opts["conversation"])
        if opts["send"]:
            if not opts["conversation"]:
                raise CommandError("--send requires --conversation")
            try:
                poller.send(opts["send"])
            except MessagingClientError as e:
                raise CommandError(f"send failed: {e}")

        try:
            poller.run(iterations=opts["iterations"])
        except KeyboardInterrupt:
            self.stdout.write("stopped")
