"""
Script to run fake Roku devices against a custom state store that
prints every key press.
"""
from fake_roku import MemoryStateStore


class PrintingStateStore(MemoryStateStore):
    """Memory store that reports each write."""

    async def set_state(self, object_id, val, ack=True):
        await super().set_state(object_id, val, ack)
        if val:
            print("pressed", object_id)


if __name__ == "__main__":
    import asyncio
    import logging
    import fake_roku

    logging.basicConfig(level=logging.DEBUG)

    async def start_fake_roku():
        config = fake_roku.FakeRokuConfig(
            bind=fake_roku.get_local_ip(),
            devices=[{"name": "test roku", "port": 8060}])

        roku = fake_roku.FakeRoku(config, PrintingStateStore())
        await roku.start()
        try:
            await asyncio.Event().wait()
        finally:
            await roku.close()

    asyncio.run(start_fake_roku())
