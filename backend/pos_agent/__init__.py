"""
On-premise print agent.

Subscribes to the POS event stream of one or more theaters, fetches each
referenced order from the REST API and prints a receipt on the theater's
ESC/POS USB printer or through the system spooler.

Entry point: ``pos-agent run`` (see ``pos_agent.cli``).
"""
