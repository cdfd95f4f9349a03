import logging
import os

import handle_table


class Session:
    def __init__(self, peer):
        self.peer = peer

    def __repr__(self):
        return f"Session({self.peer!r})"


def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING"))

    with handle_table.create_table(chunk_size=4) as sessions:
        max_seen = handle_table.MaxSeen()
        for peer in ["alice", "bob", "carol", "dave", "erin"]:
            sid = sessions.alloc_entry(max_seen)
            sessions[sid] = Session(peer)

        print(sessions.stats())
        mark = sessions.free(2)
        print("freed session 2, live sessions are below", mark)

        sid = sessions.alloc()
        sessions[sid] = Session("frank")
        print("frank got session", sid)

        for sid, session in sessions.items():
            print(sid, session)
        print("parallel arrays need", max_seen.value, "entries")


main()
