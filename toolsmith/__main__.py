from toolsmith.cli.app import main

main()
