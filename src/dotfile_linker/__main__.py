from dotfile_linker.cli import app

app()
