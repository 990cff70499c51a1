from gitscan.main import app

app(prog_name="gitscan")
