from eksblueprint.cli.CommandLineInterface import main

if __name__ == '__main__':
    main()
