from procvicka_offline.cli import main

main()
