from pkgsentinel.cli import main

main()
