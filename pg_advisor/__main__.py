from pg_advisor.cli import main

main()
