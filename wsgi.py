import sys
import os

# Ensure the app root is on the path so `import tzbuddy` works
sys.path.insert(0, os.path.dirname(__file__))

from api.server import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
