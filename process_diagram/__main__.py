from process_diagram.cli import app

app()
