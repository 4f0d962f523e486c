from repoaudit.cli import main

main()
