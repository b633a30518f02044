from .CLI.main import main

main()
