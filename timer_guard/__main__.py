from .cli_full import main

main()
