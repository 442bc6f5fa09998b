from spritegif.cli.main import cli_entry

cli_entry()
