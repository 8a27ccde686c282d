from notecards.app import create_app
