from pos_agent.cli import app

app()
