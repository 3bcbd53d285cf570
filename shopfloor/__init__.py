"""Shop-floor simulation core for a small hobby shop.

Autonomous customer agents walk in, browse single-product shelf slots, queue
at checkout stations and pay; a ledger keeps money, reputation and the daily
metrics. The core is headless and in-process:
- `ShopSimulation` drives agents cooperatively on a simulated clock
- an `EventBus` notifies presentation collaborators (audio, UI, MQTT bridge)

See `python -m shopfloor.app -h` for how to run it.
"""
